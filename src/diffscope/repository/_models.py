# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Repository models.

This module defines data structures for discovered repositories and the
per-call resolution context.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Self

from diffscope.enums import RepositoryType
from diffscope.utils import StrPath, normalize_path, path_key


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    """A version-controlled root discovered in the workspace.

    Instances are never mutated; an activated copy is produced with
    ``dataclasses.replace``.

    Attributes:
        path: Absolute, normalized repository root.
        name: Display name (the root's directory name).
        type: Version control system backing the root.
        branch: Current branch for git roots, if known.
        is_active: Whether the host or the active document marked this root.
    """

    path: Path
    name: str
    type: RepositoryType
    branch: str | None = None
    is_active: bool = False

    @property
    def key(self) -> str:
        """Identity key shared by every path spelling of this root."""
        return path_key(self.path)

    @classmethod
    def from_root(
        cls,
        root: StrPath,
        repository_type: RepositoryType,
        *,
        branch: str | None = None,
    ) -> Self:
        """Build an info record from an unnormalized root path.

        Example:
            >>> info = RepositoryInfo.from_root("/w/a/", RepositoryType.GIT)
            >>> info.name
            'a'
        """
        path = normalize_path(root)
        return cls(path=path, name=path.name or str(path), type=repository_type, branch=branch)


@dataclass(frozen=True, slots=True)
class SelectionHint:
    """UI selection state for one resource.

    Attributes:
        resource_path: The selected file or folder.
        source_control_root: The owning source-control root, when the UI
            knows it.
    """

    resource_path: Path
    source_control_root: Path | None = None


@dataclass(frozen=True, slots=True)
class RepositoryContext:
    """The repository a resolution call settled on.

    Attributes:
        repository: The identified repository.
        selected_files: Explicit file selection, if any.
        active_file: The active document, if any.
        working_directory: Directory of the first selected (or active) file
            relative to the repository root; ``Path()`` when unknown.
    """

    repository: RepositoryInfo
    selected_files: tuple[Path, ...] | None
    active_file: Path | None
    working_directory: Path


@dataclass(frozen=True, slots=True)
class RepositoryFiles:
    """Files grouped under their owning repository.

    Attributes:
        repository: The owning repository.
        files: Normalized file paths, in input order.
    """

    repository: RepositoryInfo
    files: tuple[Path, ...]
