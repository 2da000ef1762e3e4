# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Staged content detection models."""

from dataclasses import dataclass
from pathlib import Path
from typing import Self

from diffscope.enums import DiffTarget


@dataclass(frozen=True, slots=True)
class StagedDetectionResult:
    """Outcome of a staged content check.

    A result with ``error_message`` set is a safe fallback: it never reports
    staged content and always recommends ALL.

    Attributes:
        has_staged_content: Whether the index differs from HEAD.
        staged_file_count: Number of staged files.
        staged_files: Absolute paths of staged files.
        recommended_target: The diff target to use for this repository.
        repository_path: The repository that was checked.
        error_message: User-safe description of a detection failure.
    """

    has_staged_content: bool
    staged_file_count: int
    staged_files: tuple[Path, ...]
    recommended_target: DiffTarget
    repository_path: Path
    error_message: str | None = None

    @classmethod
    def fallback(cls, repository_path: Path, error_message: str) -> Self:
        """Build the safe fallback result for a failed detection."""
        return cls(
            has_staged_content=False,
            staged_file_count=0,
            staged_files=(),
            recommended_target=DiffTarget.ALL,
            repository_path=repository_path,
            error_message=error_message,
        )

    @property
    def failed(self) -> bool:
        """True for a fallback result."""
        return self.error_message is not None


@dataclass(frozen=True, slots=True)
class DiffSummary:
    """Line counts for the staged changes.

    Attributes:
        additions: Added lines across all files (binary files count 0).
        deletions: Deleted lines across all files.
        files: Number of staged files.
    """

    additions: int
    deletions: int
    files: int


@dataclass(frozen=True, slots=True)
class StagedDetails:
    """Staged files with their aggregate line counts.

    Attributes:
        files: Absolute paths of staged files.
        summary: Aggregate line counts.
    """

    files: tuple[Path, ...]
    summary: DiffSummary
