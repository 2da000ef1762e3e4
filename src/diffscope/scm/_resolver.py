"""SCM provider resolution.

Resolves the repository root and VCS kind for a request, then returns a
cached, revalidated provider for that root. Candidate providers are tried in
order: host-native integration, registered plugin factories, then the
executable-backed reference provider. Concurrent requests for the same root
share one in-flight detection, so the availability probe runs once.
"""

from typing import TYPE_CHECKING

import anyio

from diffscope.enums import ProviderOrigin, RepositoryType
from diffscope.utils import (
    DEFAULT_TIMEOUT_MS,
    dedupe_paths,
    find_marker_root,
    marker_type,
    normalize_path,
    null_logger,
    path_key,
    run_command,
)

from ._git import GitCommandProvider
from ._svn import SvnCommandProvider

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from diffscope.repository import HostIntegration, SelectionHint
    from diffscope.utils import CommandRunner, StrPath

    from ._protocol import ProviderFactory, ScmProvider

# Bound on provider creation, init and availability probes, in seconds
DEFAULT_PROBE_TIMEOUT: float = 5.0

NO_SCM = "none"

_EXECUTABLE_PROVIDERS: dict[RepositoryType, type[GitCommandProvider | SvnCommandProvider]] = {
    RepositoryType.GIT: GitCommandProvider,
    RepositoryType.SVN: SvnCommandProvider,
}


class _PendingDetection:
    """Outcome holder shared by every caller waiting on one root."""

    __slots__ = ("_event", "_provider")

    def __init__(self) -> None:
        self._event: anyio.Event = anyio.Event()
        self._provider: ScmProvider | None = None

    def resolve(self, provider: ScmProvider | None) -> None:
        self._provider = provider
        self._event.set()

    async def wait(self) -> ScmProvider | None:
        await self._event.wait()
        return self._provider


class ScmProviderResolver:
    """Resolves and caches SCM providers per repository root.

    Example:
        >>> resolver = ScmProviderResolver([Path("/w")])
        >>> provider = anyio.run(resolver.detect_scm, [Path("/w/a/src/x.py")])
        >>> resolver.get_current_scm_type()
        'git'
    """

    def __init__(
        self,
        workspace_roots: Sequence[StrPath] = (),
        *,
        integration: HostIntegration | None = None,
        runner: CommandRunner = run_command,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        command_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            workspace_roots: Workspace folders; the first is the last-resort root.
            integration: Optional host integration supplying native providers.
            runner: Command runner handed to executable-backed providers.
            probe_timeout: Bound on each candidate's creation and probes.
            command_timeout_ms: Per-command bound for executable providers.
            logger: Logger to bind; records are dropped when None.
        """
        self._workspace_roots: tuple[Path, ...] = dedupe_paths(workspace_roots)
        self._integration: HostIntegration | None = integration
        self._runner: CommandRunner = runner
        self._probe_timeout: float = probe_timeout
        self._command_timeout_ms: int = command_timeout_ms
        self._base_logger: FilteringBoundLogger | None = logger
        self._logger: FilteringBoundLogger = (logger or null_logger()).bind(component="scm_resolver")
        self._plugins: dict[RepositoryType, list[ProviderFactory]] = {}
        self._providers: dict[str, ScmProvider] = {}
        self._in_flight: dict[str, _PendingDetection] = {}
        self._current_type: RepositoryType | None = None

    def register_plugin(self, repository_type: RepositoryType, factory: ProviderFactory) -> None:
        """Register a plugin factory tried after the host integration."""
        self._plugins.setdefault(repository_type, []).append(factory)

    def get_current_scm_type(self) -> str:
        """Return the type of the most recently resolved provider, or "none"."""
        return str(self._current_type) if self._current_type is not None else NO_SCM

    def cached_provider(self, repository_path: StrPath) -> ScmProvider | None:
        """Return the cached provider for a root without revalidating it."""
        return self._providers.get(path_key(repository_path))

    def clear(self) -> None:
        """Drop cached providers and the current type."""
        self._providers.clear()
        self._current_type = None

    # =========================================================================
    # Detection
    # =========================================================================

    async def detect_scm(
        self,
        selected_files: Sequence[StrPath] | None = None,
        repository_path: StrPath | None = None,
        *,
        active_file: StrPath | None = None,
        ui_hints: Sequence[SelectionHint] | None = None,
    ) -> ScmProvider | None:
        """Resolve a provider for the request's repository.

        The root is ``repository_path`` when given; otherwise the nearest
        marker above the selected files, the active file or the UI hints,
        falling back to the first workspace root.

        Returns:
            An available provider, or None if no VCS could be resolved.
        """
        target = self._resolve_target(selected_files, repository_path, active_file, ui_hints)
        if target is None:
            self._logger.info("no_repository_root")
            return None

        root, kind = target
        key = path_key(root)
        pending = self._in_flight.get(key)
        if pending is not None:
            self._logger.debug("joining_in_flight_detection", root=str(root))
            return await pending.wait()

        pending = _PendingDetection()
        self._in_flight[key] = pending
        provider: ScmProvider | None = None
        try:
            provider = await self._revalidate_or_create(root, key, kind)
        finally:
            pending.resolve(provider)
            del self._in_flight[key]

        if provider is not None:
            self._current_type = provider.type
        return provider

    def _resolve_target(
        self,
        selected_files: Sequence[StrPath] | None,
        repository_path: StrPath | None,
        active_file: StrPath | None,
        ui_hints: Sequence[SelectionHint] | None,
    ) -> tuple[Path, RepositoryType | None] | None:
        if repository_path is not None:
            root = normalize_path(repository_path)
            return root, self._kind_below(root, selected_files)

        candidates: list[StrPath] = [*(selected_files or ())]
        if active_file is not None:
            candidates.append(active_file)
        for hint in ui_hints or ():
            if hint.source_control_root is not None:
                candidates.append(hint.source_control_root)
            candidates.append(hint.resource_path)

        for candidate in candidates:
            found = find_marker_root(candidate)
            if found is not None:
                return found

        if not self._workspace_roots:
            return None
        root = self._workspace_roots[0]
        return root, self._kind_below(root, selected_files)

    def _kind_below(
        self,
        root: Path,
        selected_files: Sequence[StrPath] | None,
    ) -> RepositoryType | None:
        """Return the root's VCS kind, walking up from the selection if needed."""
        kind = marker_type(root)
        if kind is not None:
            return kind
        for file in selected_files or ():
            found = find_marker_root(file, stop_at=root)
            if found is not None:
                return found[1]
        return None

    async def _revalidate_or_create(
        self,
        root: Path,
        key: str,
        kind: RepositoryType | None,
    ) -> ScmProvider | None:
        cached = self._providers.get(key)
        if cached is not None:
            if (kind is None or cached.type == kind) and await self._probe(cached, activate=False):
                return cached
            del self._providers[key]
            self._logger.info("provider_evicted", root=str(root))

        if kind is None or kind is RepositoryType.UNKNOWN:
            self._logger.info("no_vcs_detected", root=str(root))
            return None

        provider = await self._create_provider(root, kind)
        if provider is None:
            self._logger.warning("no_provider_available", root=str(root), kind=str(kind))
            return None

        self._providers[key] = provider
        self._logger.debug(
            "provider_resolved",
            root=str(root),
            kind=str(kind),
            origin=str(provider.capabilities.origin),
        )
        return provider

    async def _create_provider(self, root: Path, kind: RepositoryType) -> ScmProvider | None:
        native = await self._native_provider(root, kind)
        if native is not None and await self._probe(native, activate=True):
            return native

        for factory in self._plugins.get(kind, ()):
            try:
                plugin = factory(root)
            except Exception as e:  # noqa: BLE001 - A broken plugin must not stop resolution
                self._logger.warning("plugin_factory_failed", kind=str(kind), error=str(e))
                continue
            if plugin is not None and await self._probe(plugin, activate=True):
                return plugin

        provider_class = _EXECUTABLE_PROVIDERS.get(kind)
        if provider_class is None:
            return None
        executable = provider_class(
            root,
            runner=self._runner,
            timeout_ms=self._command_timeout_ms,
            origin=ProviderOrigin.EXECUTABLE,
            logger=self._base_logger,
        )
        if await self._probe(executable, activate=True):
            return executable
        return None

    async def _native_provider(self, root: Path, kind: RepositoryType) -> ScmProvider | None:
        if self._integration is None:
            return None
        try:
            with anyio.fail_after(self._probe_timeout):
                return await self._integration.create_provider(kind, root)
        except TimeoutError:
            self._logger.warning("integration_timed_out", operation="create_provider")
        except Exception as e:  # noqa: BLE001 - Host integration is optional
            self._logger.warning("integration_failed", operation="create_provider", error=str(e))
        return None

    async def _probe(self, provider: ScmProvider, *, activate: bool) -> bool:
        """Run ``init`` (when activating) and ``is_available`` under the probe timeout."""
        try:
            with anyio.fail_after(self._probe_timeout):
                if activate:
                    await provider.init()
                return await provider.is_available()
        except TimeoutError:
            self._logger.warning("provider_probe_timed_out", provider=repr(provider))
        except Exception as e:  # noqa: BLE001 - Failed candidates fall through to the next
            self._logger.warning("provider_probe_failed", provider=repr(provider), error=str(e))
        return False
