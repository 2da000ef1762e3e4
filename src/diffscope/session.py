"""Session: the owner of every cache in the engine.

A :class:`Session` builds one registry, detector, selector and resolver that
share a clock, a command runner and a logger. Its lifecycle is explicit:
``create`` builds it, ``clear`` drops every cached result, ``close`` clears
and retires it.
"""

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

from diffscope.batch import BatchReport, run_batch
from diffscope.config import Config
from diffscope.diff import DiffResult, SmartDiffSelector
from diffscope.enums import DiffTarget, RepositoryType
from diffscope.exceptions import DiffscopeError
from diffscope.repository import RepositoryContext, RepositoryRegistry
from diffscope.scm import NO_SCM, ScmProviderResolver
from diffscope.staged import StagedContentDetector, StagedDetectionResult
from diffscope.utils import null_logger, run_command

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    import anyio
    from structlog.typing import FilteringBoundLogger

    from diffscope.diff import Notifier
    from diffscope.repository import HostIntegration, RepositoryFiles, SelectionHint
    from diffscope.scm import ScmProvider
    from diffscope.utils import Clock, CommandRunner, StrPath


@dataclass(frozen=True, slots=True)
class DiffResolution:
    """Result of the end-to-end resolution pipeline.

    Attributes:
        context: The identified repository and selection.
        detection: Staged detection for the repository.
        scm_type: ``"git"``, ``"svn"`` or ``"none"``.
        target: The selected target, or None when no provider resolved.
        diff: The fetched diff, or None when no provider resolved.
    """

    context: RepositoryContext
    detection: StagedDetectionResult
    scm_type: str
    target: DiffTarget | None = None
    diff: DiffResult | None = None


class Session:
    """Engine session owning the registry, detector, selector and resolver.

    Example:
        >>> async with Session.create([Path("/w")]) as session:
        ...     resolution = await session.resolve_diff([Path("/w/a/src/x.py")])
        ...     print(resolution.target)
        staged
    """

    def __init__(
        self,
        *,
        registry: RepositoryRegistry,
        detector: StagedContentDetector,
        selector: SmartDiffSelector,
        resolver: ScmProviderResolver,
        config: Config,
        logger: FilteringBoundLogger,
    ) -> None:
        """Initialize from prebuilt components. Prefer :meth:`create`."""
        self._registry: RepositoryRegistry = registry
        self._detector: StagedContentDetector = detector
        self._selector: SmartDiffSelector = selector
        self._resolver: ScmProviderResolver = resolver
        self._config: Config = config
        self._logger: FilteringBoundLogger = logger.bind(component="session")
        self._closed: bool = False

    @classmethod
    def create(
        cls,
        workspace_roots: Sequence[StrPath],
        *,
        config: Config | None = None,
        integration: HostIntegration | None = None,
        runner: CommandRunner = run_command,
        clock: Clock = time.monotonic,
        notifier: Notifier | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> Self:
        """Build a session with fresh caches.

        Args:
            workspace_roots: Workspace folders to scan.
            config: Engine configuration; defaults when None.
            integration: Optional host integration.
            runner: Command runner shared by every component.
            clock: Time source shared by every cache.
            notifier: Receives selection notices.
            logger: Base logger; records are dropped when None.

        Returns:
            A new session.
        """
        cfg = config if config is not None else Config.from_dict({})
        log = logger or null_logger()
        probe_timeout = cfg.timeouts.provider_probe_ms / 1000.0

        return cls(
            registry=RepositoryRegistry(
                workspace_roots,
                integration=integration,
                clock=clock,
                ttl=cfg.cache.repository_ttl_ms / 1000.0,
                probe_timeout=probe_timeout,
                logger=log,
            ),
            detector=StagedContentDetector(
                runner=runner,
                clock=clock,
                ttl=cfg.cache.staged_ttl_ms / 1000.0,
                timeout_ms=cfg.timeouts.staged_detection_ms,
                fallback_to_all=cfg.detection.fallback_to_all,
                logger=log,
            ),
            selector=SmartDiffSelector(settings=cfg.detection, notifier=notifier, logger=log),
            resolver=ScmProviderResolver(
                workspace_roots,
                integration=integration,
                runner=runner,
                probe_timeout=probe_timeout,
                command_timeout_ms=cfg.timeouts.command_ms,
                logger=log,
            ),
            config=cfg,
            logger=log,
        )

    @property
    def config(self) -> Config:
        """The session configuration."""
        return self._config

    @property
    def registry(self) -> RepositoryRegistry:
        """The repository registry."""
        return self._registry

    @property
    def detector(self) -> StagedContentDetector:
        """The staged content detector."""
        return self._detector

    @property
    def selector(self) -> SmartDiffSelector:
        """The diff selector."""
        return self._selector

    @property
    def resolver(self) -> ScmProviderResolver:
        """The provider resolver."""
        return self._resolver

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._closed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def clear(self) -> None:
        """Drop every cached repository, detection result and provider."""
        self._registry.invalidate()
        self._detector.clear_cache()
        self._resolver.clear()
        self._logger.debug("session_cleared")

    async def close(self) -> None:
        """Clear caches and retire the session."""
        if self._closed:
            return
        self.clear()
        self._closed = True
        self._logger.debug("session_closed")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Session is closed"
            raise DiffscopeError(msg)

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def _detect(
        self,
        context: RepositoryContext,
        provider: ScmProvider | None,
    ) -> StagedDetectionResult:
        repository = context.repository
        staged_capable = provider.capabilities.supports_staging if provider else (
            repository.type is RepositoryType.GIT
        )
        if staged_capable:
            return await self._detector.detect_staged_content(repository.path)
        # Without a staging area the whole working copy is the only scope
        return StagedDetectionResult(
            has_staged_content=False,
            staged_file_count=0,
            staged_files=(),
            recommended_target=DiffTarget.ALL,
            repository_path=repository.path,
        )

    async def resolve_diff(
        self,
        selected_files: Sequence[StrPath] | None = None,
        active_file: StrPath | None = None,
        ui_hints: Sequence[SelectionHint] | None = None,
        *,
        user_preference: DiffTarget | None = None,
    ) -> DiffResolution:
        """Identify the repository, pick the diff target and fetch the diff.

        Returns:
            The resolution. ``target`` and ``diff`` are None when no provider
            could be resolved for the repository.

        Raises:
            DetectionError: If the workspace holds no repository at all.
            DiffRetrievalError: If the provider fails to produce the diff.
            DiffscopeError: If the session is closed.
        """
        self._ensure_open()
        context = await self._registry.identify_repository(selected_files, active_file, ui_hints)
        return await self._resolve_context(context, user_preference)

    async def _resolve_context(
        self,
        context: RepositoryContext,
        user_preference: DiffTarget | None,
    ) -> DiffResolution:
        provider = await self._resolver.detect_scm(
            context.selected_files,
            context.repository.path,
            active_file=context.active_file,
        )
        detection = await self._detect(context, provider)

        if provider is None:
            self._logger.info("no_provider", repository=str(context.repository.path))
            return DiffResolution(context=context, detection=detection, scm_type=NO_SCM)

        target = self._selector.select_diff_target(provider, detection, user_preference)
        diff = await self._selector.get_diff_with_target(provider, target, context.selected_files)
        return DiffResolution(
            context=context,
            detection=detection,
            scm_type=str(provider.type),
            target=target,
            diff=diff,
        )

    async def resolve_batch(
        self,
        files: Sequence[StrPath],
        *,
        user_preference: DiffTarget | None = None,
        cancel: anyio.Event | None = None,
    ) -> BatchReport[DiffResolution]:
        """Resolve one diff per repository owning any of ``files``.

        Raises:
            BatchCancelledError: If ``cancel`` is set between repositories.
            DiffscopeError: If the session is closed.
        """
        self._ensure_open()
        groups = await self._registry.group_files_by_repository(files)

        async def resolve_group(group: RepositoryFiles) -> DiffResolution:
            self._ensure_open()
            return await self._resolve_context(self._registry.context_for(group), user_preference)

        return await run_batch(groups, resolve_group, cancel=cancel, logger=self._logger)


__all__ = ["DiffResolution", "Session"]

