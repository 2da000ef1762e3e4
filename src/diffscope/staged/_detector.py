"""Staged content detection.

Determines whether a git repository has staged changes and recommends a diff
scope. :meth:`StagedContentDetector.detect_staged_content` never raises: any
failure becomes a fallback result recommending ALL. The strict primitives
:meth:`~StagedContentDetector.get_staged_files` and
:meth:`~StagedContentDetector.get_staged_details` raise
:class:`~diffscope.exceptions.DetectionError` instead.
"""

import time
from typing import TYPE_CHECKING

import anyio

from diffscope.enums import DetectionErrorKind, DiffTarget
from diffscope.exceptions import DetectionError
from diffscope.utils import (
    DEFAULT_TIMEOUT_MS,
    TtlCache,
    normalize_path,
    null_logger,
    path_key,
    run_command,
    truncate_output,
)

from ._models import DiffSummary, StagedDetails, StagedDetectionResult

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from diffscope.utils import Clock, CommandResult, CommandRunner, StrPath

# Staged-detection cache lifetime in seconds
DEFAULT_STAGED_TTL: float = 5.0


def _parse_numstat(output: str) -> tuple[int, int]:
    """Sum added and deleted line counts from ``git diff --numstat``.

    Binary files report ``-`` and count as zero.
    """
    additions = 0
    deletions = 0
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) < 2:  # noqa: PLR2004
            continue
        if parts[0].isdigit():
            additions += int(parts[0])
        if parts[1].isdigit():
            deletions += int(parts[1])
    return additions, deletions


class StagedContentDetector:
    """Detects staged changes in git repositories.

    Successful results are cached per normalized repository path for ``ttl``
    seconds. A cached result is only served while the repository directory
    still exists.

    Example:
        >>> detector = StagedContentDetector()
        >>> result = anyio.run(detector.detect_staged_content, Path("/w/a"))
        >>> result.recommended_target
        <DiffTarget.STAGED: 'staged'>
    """

    def __init__(
        self,
        *,
        runner: CommandRunner = run_command,
        clock: Clock = time.monotonic,
        ttl: float = DEFAULT_STAGED_TTL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        fallback_to_all: bool = True,
        executable: str = "git",
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the detector.

        Args:
            runner: Command runner used for git invocations.
            clock: Time source for the result cache.
            ttl: Result cache lifetime in seconds.
            timeout_ms: Default bound on one detection, in milliseconds.
            fallback_to_all: Recommend ALL when nothing is staged.
            executable: The git executable.
            logger: Logger to bind; records are dropped when None.
        """
        self._runner: CommandRunner = runner
        self._cache: TtlCache[StagedDetectionResult] = TtlCache(ttl, clock=clock)
        self._timeout_ms: int = timeout_ms
        self._fallback_to_all: bool = fallback_to_all
        self._executable: str = executable
        self._logger: FilteringBoundLogger = (logger or null_logger()).bind(
            component="staged_detector"
        )

    def recommend_target(self, staged_file_count: int) -> DiffTarget:
        """Recommend a diff target for a staged-file count.

        Returns:
            STAGED when files are staged; otherwise ALL if fallback-to-all is
            enabled, else STAGED.
        """
        if staged_file_count > 0:
            return DiffTarget.STAGED
        return DiffTarget.ALL if self._fallback_to_all else DiffTarget.STAGED

    def clear_cache(self) -> None:
        """Drop every cached detection result."""
        self._cache.clear()

    async def detect_staged_content(
        self,
        repository_path: StrPath,
        *,
        use_cache: bool = True,
        timeout_ms: int | None = None,
    ) -> StagedDetectionResult:
        """Check a repository for staged changes.

        Args:
            repository_path: The repository root.
            use_cache: Serve and store results in the cache.
            timeout_ms: Bound on the whole detection; the detector default
                when None.

        Returns:
            The detection result, or a fallback result with ``error_message``
            set when detection fails for any reason.
        """
        root = normalize_path(repository_path)
        key = path_key(root)
        effective_timeout = timeout_ms if timeout_ms is not None else self._timeout_ms

        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                if root.is_dir():
                    return cached
                _ = self._cache.invalidate(key)
                self._logger.debug("cache_entry_dropped", repository=str(root))

        try:
            with anyio.fail_after(effective_timeout / 1000.0):
                files = await self._staged_files(root, effective_timeout)
        except TimeoutError:
            error = DetectionError(
                DetectionErrorKind.TIMEOUT,
                f"Staged content detection timed out after {effective_timeout}ms",
                repository_path=root,
            )
            return self._fallback(root, error)
        except DetectionError as e:
            return self._fallback(root, e)
        except Exception as e:  # noqa: BLE001 - Detection must never raise
            error = DetectionError(
                DetectionErrorKind.UNKNOWN,
                "Unknown error occurred during staged content detection",
                repository_path=root,
                cause=e,
            )
            return self._fallback(root, error)

        result = StagedDetectionResult(
            has_staged_content=bool(files),
            staged_file_count=len(files),
            staged_files=files,
            recommended_target=self.recommend_target(len(files)),
            repository_path=root,
        )
        if use_cache:
            _ = self._cache.set(key, result)
        self._logger.debug(
            "staged_content_detected",
            repository=str(root),
            staged_file_count=result.staged_file_count,
            recommended_target=str(result.recommended_target),
        )
        return result

    async def has_staged_changes(self, repository_path: StrPath) -> bool:
        """Return True if the repository has staged files; never raises."""
        try:
            files = await self.get_staged_files(repository_path)
        except DetectionError:
            return False
        return bool(files)

    async def get_staged_files(
        self,
        repository_path: StrPath,
        *,
        timeout_ms: int | None = None,
    ) -> tuple[Path, ...]:
        """List staged files.

        Returns:
            Absolute paths of staged files, in git's order.

        Raises:
            DetectionError: If the path is not a repository or git fails.
        """
        root = normalize_path(repository_path)
        effective_timeout = timeout_ms if timeout_ms is not None else self._timeout_ms
        return await self._staged_files(root, effective_timeout)

    async def get_staged_details(
        self,
        repository_path: StrPath,
        *,
        timeout_ms: int | None = None,
    ) -> StagedDetails:
        """List staged files with aggregate added and deleted line counts.

        Raises:
            DetectionError: If the path is not a repository or git fails.
        """
        root = normalize_path(repository_path)
        effective_timeout = timeout_ms if timeout_ms is not None else self._timeout_ms
        files = await self._staged_files(root, effective_timeout)
        numstat = await self._git(root, ("diff", "--cached", "--numstat"), effective_timeout)
        additions, deletions = _parse_numstat(numstat)
        return StagedDetails(
            files=files,
            summary=DiffSummary(additions=additions, deletions=deletions, files=len(files)),
        )

    # =========================================================================
    # Internals
    # =========================================================================

    async def _staged_files(self, root: Path, timeout_ms: int) -> tuple[Path, ...]:
        await self._validate_repository(root, timeout_ms)
        output = await self._git(root, ("diff", "--cached", "--name-only", "-z"), timeout_ms)
        return tuple(root / name for name in output.split("\0") if name)

    async def _validate_repository(self, root: Path, timeout_ms: int) -> None:
        try:
            _ = await self._git(root, ("rev-parse", "--git-dir"), timeout_ms)
        except DetectionError as e:
            if e.kind in (DetectionErrorKind.TIMEOUT, DetectionErrorKind.PERMISSION_DENIED):
                raise
            msg = f"Path '{root}' is not a valid git repository"
            raise DetectionError(
                DetectionErrorKind.INVALID_REPOSITORY,
                msg,
                repository_path=root,
                cause=e,
            ) from e

    async def _git(self, root: Path, args: tuple[str, ...], timeout_ms: int) -> str:
        result = await self._runner([self._executable, *args], cwd=root, timeout_ms=timeout_ms)
        if result.ok:
            return result.stdout

        self._logger.warning(
            "git_command_failed",
            command=result.display,
            repository=str(root),
            exit_code=result.exit_code,
            error=result.error,
            stderr=truncate_output(result.stderr),
        )
        raise self._classify(result, root)

    def _classify(self, result: CommandResult, root: Path) -> DetectionError:
        if result.command_not_found or result.cwd_missing:
            kind = DetectionErrorKind.INVALID_REPOSITORY
            message = "Git executable not found or repository path invalid"
        elif result.permission_denied:
            kind = DetectionErrorKind.PERMISSION_DENIED
            message = "Permission denied accessing repository"
        elif result.timed_out:
            kind = DetectionErrorKind.TIMEOUT
            message = "Operation timed out"
        elif "not a git repository" in result.stderr.lower():
            kind = DetectionErrorKind.INVALID_REPOSITORY
            message = "Not a valid git repository"
        elif result.success:
            kind = DetectionErrorKind.COMMAND_FAILED
            message = f"Git command failed with exit code {result.exit_code}"
        else:
            kind = DetectionErrorKind.UNKNOWN
            message = "Unknown error occurred during staged content detection"
        return DetectionError(kind, message, repository_path=root)

    def _fallback(self, root: Path, error: DetectionError) -> StagedDetectionResult:
        self._logger.warning(
            "staged_detection_failed",
            repository=str(root),
            kind=str(error.kind),
            error=error.message,
        )
        return StagedDetectionResult.fallback(root, error.message)
