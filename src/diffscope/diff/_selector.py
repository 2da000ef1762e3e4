"""Diff target selection and retrieval.

:class:`SmartDiffSelector` turns a staged-detection result and the user's
preference into STAGED or ALL, fetches the diff for that target, and checks
that the target actually yields content.
"""

from typing import TYPE_CHECKING

import anyio

from diffscope.config import DetectionConfig
from diffscope.enums import DiffTarget
from diffscope.exceptions import DiffRetrievalError
from diffscope.utils import null_logger

from ._models import DiffResult, TargetValidation
from ._notify import LogNotifier, build_notice

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from diffscope.scm import ScmProvider
    from diffscope.staged import StagedDetectionResult

    from ._notify import Notifier


class SmartDiffSelector:
    """Selects and fetches the diff scope for commit message generation.

    Steering a provider's ``diff_scope`` is serialized per provider with an
    ``anyio.Lock``, and the previous scope is restored on every exit path.

    Example:
        >>> selector = SmartDiffSelector()
        >>> selector.select_diff_target(provider, detection)
        <DiffTarget.STAGED: 'staged'>
    """

    def __init__(
        self,
        *,
        settings: DetectionConfig | None = None,
        notifier: Notifier | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the selector.

        Args:
            settings: Detection settings; defaults when None.
            notifier: Receives selection notices; logs them when None.
            logger: Logger to bind; records are dropped when None.
        """
        self._settings: DetectionConfig = settings if settings is not None else DetectionConfig()
        self._logger: FilteringBoundLogger = (logger or null_logger()).bind(component="diff_selector")
        self._notifier: Notifier = notifier if notifier is not None else LogNotifier(logger)
        self._locks: dict[int, tuple[ScmProvider, anyio.Lock]] = {}

    @property
    def settings(self) -> DetectionConfig:
        """The detection settings in effect."""
        return self._settings

    def _fallback_target(self) -> DiffTarget:
        return DiffTarget.ALL if self._settings.fallback_to_all else DiffTarget.STAGED

    def select_diff_target(
        self,
        provider: ScmProvider,
        detection_result: StagedDetectionResult,
        user_preference: DiffTarget | None = None,
    ) -> DiffTarget:
        """Choose STAGED or ALL for a repository.

        Resolution order:
        1. An explicit non-AUTO ``user_preference``
        2. The configured preferred target when auto-detection is disabled
           (AUTO maps to ALL)
        3. The fallback policy when detection failed
        4. STAGED when staged content exists, else the fallback policy

        Returns:
            STAGED or ALL; never AUTO.
        """
        if user_preference is not None and user_preference is not DiffTarget.AUTO:
            target, reason = user_preference, "User preference"
        elif not self._settings.auto_detect_staged:
            preferred = self._settings.preferred_target
            target = DiffTarget.ALL if preferred is DiffTarget.AUTO else preferred
            reason = "Auto-detection disabled"
        elif detection_result.error_message is not None:
            target, reason = self._fallback_target(), "Detection failed"
        elif detection_result.has_staged_content and detection_result.staged_file_count > 0:
            target, reason = DiffTarget.STAGED, "Auto-detection"
        else:
            target, reason = self._fallback_target(), "Auto-detection"

        self._logger.debug(
            "diff_target_selected",
            repository=str(provider.root),
            target=str(target),
            reason=reason,
        )
        if not self._settings.suppress_notifications:
            self._notifier.notify(build_notice(target, detection_result, reason))
        return target

    def _lock_for(self, provider: ScmProvider) -> anyio.Lock:
        entry = self._locks.get(id(provider))
        if entry is None or entry[0] is not provider:
            entry = (provider, anyio.Lock())
            self._locks[id(provider)] = entry
        return entry[1]

    async def get_diff_with_target(
        self,
        provider: ScmProvider,
        target: DiffTarget,
        files: Sequence[Path] | None = None,
    ) -> DiffResult:
        """Fetch the diff for ``target``.

        For providers that support staging, ``provider.diff_scope`` is set to
        ``target`` for the duration of the fetch and restored afterwards,
        including when the fetch fails. AUTO is treated as ALL.

        Args:
            provider: The provider for the repository.
            target: STAGED or ALL.
            files: Limit the diff to these files.

        Returns:
            The diff result.

        Raises:
            DiffRetrievalError: If the provider fails to produce the diff.
        """
        if target is DiffTarget.AUTO:
            self._logger.warning("auto_target_received", repository=str(provider.root))
            target = DiffTarget.ALL

        try:
            if provider.capabilities.supports_staging:
                async with self._lock_for(provider):
                    previous = provider.diff_scope
                    provider.diff_scope = target
                    try:
                        content = await provider.get_diff(files)
                        changed = await provider.changed_files(files)
                    finally:
                        provider.diff_scope = previous
            else:
                content = await provider.get_diff(files)
                changed = await provider.changed_files(files)
        except Exception as e:
            self._logger.warning(
                "diff_retrieval_failed",
                repository=str(provider.root),
                target=str(target),
                error=str(e),
            )
            msg = f"Failed to get diff content for target '{target}'"
            raise DiffRetrievalError(msg, target=target, cause=e) from e

        return DiffResult(
            content=content or "",
            target=target,
            files=tuple(changed),
            repository_path=provider.root,
        )

    async def validate_target(
        self,
        provider: ScmProvider,
        target: DiffTarget,
        files: Sequence[Path] | None = None,
    ) -> TargetValidation:
        """Check that ``target`` yields a non-empty diff.

        An empty STAGED diff suggests ALL; the suggestion is not applied.

        Returns:
            The validation outcome.
        """
        try:
            result = await self.get_diff_with_target(provider, target, files)
        except DiffRetrievalError as e:
            return TargetValidation(
                is_valid=False,
                reason=f"Unable to get diff content for target '{e.target}'",
            )

        if not result.is_empty:
            return TargetValidation(is_valid=True)
        if result.target is DiffTarget.STAGED:
            return TargetValidation(
                is_valid=False,
                reason="Staging area is empty; consider analyzing all working tree changes",
                suggestion=DiffTarget.ALL,
            )
        return TargetValidation(is_valid=False, reason="No changes detected")
