"""Shared utilities for diffscope."""

from ._cache import CacheEntry, Clock, TtlCache
from ._exec import (
    DEFAULT_TIMEOUT_MS,
    CommandResult,
    CommandRunner,
    command_available,
    run_command,
    truncate_output,
)
from ._git import (
    WorkingTreeStatus,
    decode_bytes,
    read_branch,
    read_recent_subjects,
    read_status,
    strip_refs_heads,
)
from ._logging import create_cli_logger, create_logger, null_logger
from ._paths import (
    GIT_MARKER,
    SVN_MARKER,
    StrPath,
    dedupe_paths,
    find_marker_root,
    is_within,
    marker_type,
    normalize_path,
    path_key,
)

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "GIT_MARKER",
    "SVN_MARKER",
    "CacheEntry",
    "Clock",
    "CommandResult",
    "CommandRunner",
    "StrPath",
    "TtlCache",
    "WorkingTreeStatus",
    "command_available",
    "create_cli_logger",
    "create_logger",
    "decode_bytes",
    "dedupe_paths",
    "find_marker_root",
    "is_within",
    "marker_type",
    "normalize_path",
    "null_logger",
    "path_key",
    "read_branch",
    "read_recent_subjects",
    "read_status",
    "run_command",
    "strip_refs_heads",
    "truncate_output",
]
