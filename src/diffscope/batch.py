"""Per-repository batch processing with cooperative cancellation.

A batch runs one operation per repository group in order. The cancellation
signal is checked between items; a set signal aborts the batch by raising
:class:`~diffscope.exceptions.BatchCancelledError` carrying the results
gathered so far. One item's failure is recorded and its siblings still run.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from diffscope.exceptions import BatchCancelledError
from diffscope.utils import null_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    import anyio
    from structlog.typing import FilteringBoundLogger

    from diffscope.repository import RepositoryFiles, RepositoryInfo


@dataclass(frozen=True, slots=True)
class RepositoryBatchResult[T]:
    """Outcome of one batch item.

    Attributes:
        repository: The repository the item ran against.
        value: The operation's result on success.
        error: User-safe failure description.
    """

    repository: RepositoryInfo
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True when the item succeeded."""
        return self.error is None


@dataclass(frozen=True, slots=True)
class BatchReport[T]:
    """Results of a batch, complete or partial.

    Attributes:
        results: Per-item outcomes in processing order.
        total: Number of items the batch was asked to process.
    """

    results: tuple[RepositoryBatchResult[T], ...]
    total: int

    @property
    def succeeded(self) -> int:
        """Number of items that succeeded."""
        return sum(1 for result in self.results if result.ok)

    @property
    def failed(self) -> int:
        """Number of items that failed."""
        return sum(1 for result in self.results if not result.ok)

    @property
    def complete(self) -> bool:
        """True when every item was processed."""
        return len(self.results) == self.total


async def run_batch[T](
    groups: Sequence[RepositoryFiles],
    operation: Callable[[RepositoryFiles], Awaitable[T]],
    *,
    cancel: anyio.Event | None = None,
    logger: FilteringBoundLogger | None = None,
) -> BatchReport[T]:
    """Run ``operation`` for each repository group.

    Args:
        groups: Repository groups, e.g. from
            :meth:`~diffscope.repository.RepositoryRegistry.group_files_by_repository`.
        operation: Coroutine function applied to each group.
        cancel: Signal checked before each item.
        logger: Logger to bind; records are dropped when None.

    Returns:
        The report for every group.

    Raises:
        BatchCancelledError: If ``cancel`` is set before an item starts.
    """
    log = (logger or null_logger()).bind(component="batch")
    results: list[RepositoryBatchResult[T]] = []

    for group in groups:
        if cancel is not None and cancel.is_set():
            report = BatchReport(results=tuple(results), total=len(groups))
            log.info("batch_cancelled", processed=len(results), total=len(groups))
            msg = f"Batch cancelled after {len(results)} of {len(groups)} repositories"
            raise BatchCancelledError(msg, report=report)

        try:
            value = await operation(group)
        except Exception as e:  # noqa: BLE001 - One repository must not abort the batch
            log.warning(
                "batch_item_failed",
                repository=str(group.repository.path),
                error=str(e),
            )
            results.append(RepositoryBatchResult(repository=group.repository, error=str(e)))
        else:
            results.append(RepositoryBatchResult(repository=group.repository, value=value))

    return BatchReport(results=tuple(results), total=len(groups))
