"""Path normalization and repository marker lookup.

Every cache key in diffscope goes through :func:`path_key`. The policy is:
expand ``~``, make absolute, resolve symlinks without requiring the path to
exist, and case-fold on platforms whose default filesystems are
case-insensitive (Windows and macOS).
"""

import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from diffscope.enums import RepositoryType

StrPath = str | os.PathLike[str]

GIT_MARKER: Final = ".git"
SVN_MARKER: Final = ".svn"

# Checked in this order; a directory holding both is treated as git.
REPOSITORY_MARKERS: Final[tuple[tuple[str, RepositoryType], ...]] = (
    (GIT_MARKER, RepositoryType.GIT),
    (SVN_MARKER, RepositoryType.SVN),
)

_CASE_INSENSITIVE: Final = sys.platform in {"win32", "darwin"}


def normalize_path(path: StrPath) -> Path:
    """Normalize a path to its absolute, symlink-resolved form.

    Args:
        path: The path to normalize. Need not exist.

    Returns:
        The absolute path with symlinks resolved where they exist.
    """
    expanded = Path(path).expanduser()
    try:
        return expanded.resolve(strict=False)
    except (OSError, RuntimeError):
        # Symlink loops or unreadable parents; fall back to a lexical form.
        return Path(os.path.abspath(expanded))


def path_key(path: StrPath) -> str:
    """Return the identity key for a path.

    Two paths that resolve to the same physical directory produce the same key.

    Args:
        path: The path to key.

    Returns:
        The normalized path string, case-folded on case-insensitive platforms.
    """
    key = str(normalize_path(path))
    return key.casefold() if _CASE_INSENSITIVE else key


def _key_parts(path: StrPath) -> tuple[str, ...]:
    parts = normalize_path(path).parts
    if _CASE_INSENSITIVE:
        return tuple(part.casefold() for part in parts)
    return parts


def is_within(path: StrPath, root: StrPath) -> bool:
    """Check whether ``path`` equals ``root`` or lies underneath it.

    Components are compared after normalization, so ``/w/project10`` is not
    inside ``/w/project1``.

    Args:
        path: The candidate path.
        root: The containing directory.

    Returns:
        True if ``path`` is ``root`` or a descendant of it.
    """
    root_parts = _key_parts(root)
    return _key_parts(path)[: len(root_parts)] == root_parts


def marker_type(directory: Path) -> RepositoryType | None:
    """Return the VCS type whose marker sits directly inside ``directory``.

    A ``.git`` entry may be a directory or, for linked worktrees, a file.

    Args:
        directory: The directory to inspect.

    Returns:
        The repository type, or None if no marker is present.
    """
    try:
        if (directory / GIT_MARKER).exists():
            return RepositoryType.GIT
        if (directory / SVN_MARKER).is_dir():
            return RepositoryType.SVN
    except OSError:
        return None
    return None


def find_marker_root(
    start: StrPath,
    *,
    stop_at: StrPath | None = None,
) -> tuple[Path, RepositoryType] | None:
    """Walk upward from ``start`` to the nearest repository marker.

    Args:
        start: A file or directory path. Files (and paths that no longer
            exist) start the walk from their parent directory.
        stop_at: Optional directory that bounds the walk; directories above
            it are not examined.

    Returns:
        Tuple of (repository root, repository type), or None if not found.
    """
    current = normalize_path(start)
    if not current.is_dir():
        current = current.parent

    if stop_at is not None and not is_within(current, stop_at):
        return None

    while True:
        found = marker_type(current)
        if found is not None:
            return current, found
        if stop_at is not None and path_key(current) == path_key(stop_at):
            return None
        parent = current.parent
        if parent == current:
            return None
        current = parent


def dedupe_paths(paths: Sequence[StrPath]) -> tuple[Path, ...]:
    """Normalize paths and drop duplicates, preserving first-seen order.

    Args:
        paths: Paths to normalize.

    Returns:
        Tuple of unique normalized paths.
    """
    seen: set[str] = set()
    unique: list[Path] = []
    for raw in paths:
        normalized = normalize_path(raw)
        key = path_key(normalized)
        if key not in seen:
            seen.add(key)
            unique.append(normalized)
    return tuple(unique)
