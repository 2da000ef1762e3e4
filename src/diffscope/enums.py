"""Enumeration types for diffscope."""

from enum import StrEnum


class DiffTarget(StrEnum):
    """Scope of uncommitted work to diff.

    AUTO is an input-only value. Every resolution path converts it to STAGED
    or ALL before a diff is fetched.
    """

    STAGED = "staged"
    ALL = "all"
    AUTO = "auto"


class RepositoryType(StrEnum):
    """Version control system backing a repository root."""

    GIT = "git"
    SVN = "svn"
    UNKNOWN = "unknown"


class DetectionErrorKind(StrEnum):
    """Failure categories for repository and staged-content detection."""

    INVALID_REPOSITORY = "invalid_repository"
    PERMISSION_DENIED = "permission_denied"
    TIMEOUT = "timeout"
    COMMAND_FAILED = "command_failed"
    UNKNOWN = "unknown"


class ProviderOrigin(StrEnum):
    """Where a provider handle came from, in resolution preference order."""

    NATIVE = "native"
    PLUGIN = "plugin"
    EXECUTABLE = "executable"
