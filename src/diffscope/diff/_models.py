# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Diff selection models."""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from diffscope.enums import DiffTarget


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Diff text for one target, ready for the message generator.

    Attributes:
        content: The diff text; empty when nothing changed.
        target: The target the diff was fetched for (never AUTO).
        files: Repository-relative paths covered by the diff.
        repository_path: Root of the repository the diff came from.
    """

    content: str
    target: DiffTarget
    files: tuple[str, ...]
    repository_path: Path

    @property
    def is_empty(self) -> bool:
        """True when the diff holds no changes."""
        return not self.content.strip()


@dataclass(frozen=True, slots=True)
class TargetValidation:
    """Whether a diff target yields any content.

    Attributes:
        is_valid: True when the target produced a non-empty diff.
        reason: Why the target is not usable.
        suggestion: A better target for the caller to consider. It is
            never applied automatically.
    """

    is_valid: bool
    reason: str | None = None
    suggestion: DiffTarget | None = None


class NoticeLevel(StrEnum):
    """Severity of a selection notice."""

    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class SelectionNotice:
    """User-facing description of a diff target decision.

    Attributes:
        target: The selected target.
        level: Notice severity.
        message: What will be analyzed.
        reason: Which rule produced the decision.
    """

    target: DiffTarget
    level: NoticeLevel
    message: str
    reason: str

    def __str__(self) -> str:
        return f"{self.message} ({self.reason})"
