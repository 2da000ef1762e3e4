"""Selection notices."""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from diffscope.enums import DiffTarget
from diffscope.utils import null_logger

from ._models import NoticeLevel, SelectionNotice

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from diffscope.staged import StagedDetectionResult


@runtime_checkable
class Notifier(Protocol):
    """Receives selection notices for display."""

    def notify(self, notice: SelectionNotice) -> None:
        """Show or record ``notice``."""
        ...


class LogNotifier:
    """Notifier that writes notices to a structlog logger."""

    def __init__(self, logger: FilteringBoundLogger | None = None) -> None:
        self._logger: FilteringBoundLogger = (logger or null_logger()).bind(component="notifier")

    def notify(self, notice: SelectionNotice) -> None:
        if notice.level is NoticeLevel.WARNING:
            self._logger.warning(notice.message, target=str(notice.target), reason=notice.reason)
        else:
            self._logger.info(notice.message, target=str(notice.target), reason=notice.reason)


def build_notice(
    target: DiffTarget,
    detection: StagedDetectionResult,
    reason: str,
) -> SelectionNotice:
    """Describe a target decision for the user.

    Example:
        >>> from pathlib import Path
        >>> from diffscope.staged import StagedDetectionResult
        >>> detection = StagedDetectionResult(True, 2, (), DiffTarget.STAGED, Path("/w/a"))
        >>> str(build_notice(DiffTarget.STAGED, detection, "Auto-detection"))
        'Analyzing staged changes (2 files) (Auto-detection)'
    """
    level = NoticeLevel.INFO
    if target is DiffTarget.STAGED:
        if detection.has_staged_content:
            message = f"Analyzing staged changes ({detection.staged_file_count} files)"
        else:
            message = "Staging area is empty; analyzing staged changes anyway"
            level = NoticeLevel.WARNING
    elif detection.has_staged_content:
        message = (
            f"Analyzing all working tree changes "
            f"(including {detection.staged_file_count} staged files)"
        )
    else:
        message = "Staging area is empty; analyzing all working tree changes"
    return SelectionNotice(target=target, level=level, message=message, reason=reason)
