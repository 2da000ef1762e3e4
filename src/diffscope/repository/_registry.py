"""Repository discovery and identification.

The registry scans the workspace roots for repository markers, caches the
result for a fixed lifetime and answers "which repository is the user working
in" from explicit selections, the active document, UI hints or the host
integration, in that order.
"""

import os
import time
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import anyio
import anyio.to_thread

from diffscope.enums import DetectionErrorKind, RepositoryType
from diffscope.exceptions import DetectionError
from diffscope.utils import (
    TtlCache,
    dedupe_paths,
    find_marker_root,
    is_within,
    marker_type,
    normalize_path,
    null_logger,
    path_key,
    read_branch,
)

from ._models import RepositoryContext, RepositoryFiles, RepositoryInfo, SelectionHint

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.typing import FilteringBoundLogger

    from diffscope.utils import Clock, StrPath

    from ._integration import HostIntegration

# Discovery cache lifetime in seconds
DEFAULT_REPOSITORY_TTL: float = 30.0

# Bound on host integration calls and per-root filesystem probes, in seconds
DEFAULT_PROBE_TIMEOUT: float = 5.0

_CACHE_KEY = "repositories"


def _scan_root(root: Path) -> list[tuple[Path, RepositoryType]]:
    """Find repositories at ``root`` or one level below it."""
    found = marker_type(root)
    if found is not None:
        return [(root, found)]

    results: list[tuple[Path, RepositoryType]] = []
    try:
        children = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError:
        return results

    for child in children:
        if child.name.startswith("."):
            continue
        try:
            if not child.is_dir():
                continue
        except OSError:
            continue
        child_type = marker_type(child)
        if child_type is not None:
            results.append((normalize_path(child), child_type))
    return results


def _deepest_match(
    repositories: Sequence[RepositoryInfo],
    path: StrPath,
) -> RepositoryInfo | None:
    """Return the repository with the deepest root containing ``path``."""
    matches = [repo for repo in repositories if is_within(path, repo.path)]
    if not matches:
        return None
    return max(matches, key=lambda repo: len(repo.path.parts))


def _working_directory(repository: RepositoryInfo, file: Path | None) -> Path:
    if file is None or not is_within(file, repository.path):
        return Path()
    normalized = normalize_path(file)
    directory = normalized if normalized == repository.path else normalized.parent
    relative = os.path.relpath(directory, repository.path)
    return Path() if relative == os.curdir else Path(relative)


class RepositoryRegistry:
    """Discovers and identifies version-controlled roots in a workspace.

    Discovery results are cached for ``ttl`` seconds. A refresh bumps an
    internal generation counter so that a scan which started before the
    refresh cannot repopulate the cache with pre-refresh results.

    Example:
        >>> registry = RepositoryRegistry([Path("/w")])
        >>> context = anyio.run(registry.identify_repository, [Path("/w/a/src/x.py")])
        >>> context.repository.path
        PosixPath('/w/a')
    """

    def __init__(
        self,
        workspace_roots: Sequence[StrPath],
        *,
        integration: HostIntegration | None = None,
        clock: Clock = time.monotonic,
        ttl: float = DEFAULT_REPOSITORY_TTL,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            workspace_roots: Workspace folders to scan.
            integration: Optional host integration reporting active roots.
            clock: Time source for the discovery cache.
            ttl: Discovery cache lifetime in seconds.
            probe_timeout: Bound on integration calls and filesystem probes.
            logger: Logger to bind; records are dropped when None.
        """
        self._workspace_roots: tuple[Path, ...] = dedupe_paths(workspace_roots)
        self._integration: HostIntegration | None = integration
        self._cache: TtlCache[tuple[RepositoryInfo, ...]] = TtlCache(ttl, clock=clock)
        self._probe_timeout: float = probe_timeout
        self._generation: int = 0
        self._logger: FilteringBoundLogger = (logger or null_logger()).bind(
            component="repository_registry"
        )

    @property
    def workspace_roots(self) -> tuple[Path, ...]:
        """Normalized workspace roots, in configuration order."""
        return self._workspace_roots

    @property
    def generation(self) -> int:
        """Number of refreshes performed so far."""
        return self._generation

    # =========================================================================
    # Discovery
    # =========================================================================

    async def get_all_repositories(self) -> tuple[RepositoryInfo, ...]:
        """Return every repository in the workspace.

        Each workspace root is tested for a repository marker; when it has
        none, its non-hidden immediate subdirectories are tested in name
        order. Roots that cannot be scanned are logged and skipped.

        Returns:
            Discovered repositories in workspace-root order.
        """
        cached = self._cache.get(_CACHE_KEY)
        if cached is not None:
            return cached

        generation = self._generation
        repositories = await self._scan()

        if generation == self._generation:
            _ = self._cache.set(_CACHE_KEY, repositories)
        else:
            self._logger.debug("discarding_stale_scan", generation=generation)
        return repositories

    def invalidate(self) -> None:
        """Drop cached discovery results, including any scan still in flight."""
        self._generation += 1
        self._cache.clear()
        self._logger.debug("repositories_invalidated", generation=self._generation)

    async def refresh_repositories(self) -> tuple[RepositoryInfo, ...]:
        """Drop cached discovery results and rescan the workspace."""
        self.invalidate()
        return await self.get_all_repositories()

    async def _scan(self) -> tuple[RepositoryInfo, ...]:
        seen: set[str] = set()
        repositories: list[RepositoryInfo] = []

        for root in self._workspace_roots:
            found: list[tuple[Path, RepositoryType]] = []
            try:
                with anyio.fail_after(self._probe_timeout):
                    found = await anyio.to_thread.run_sync(
                        _scan_root, root, abandon_on_cancel=True
                    )
            except TimeoutError:
                self._logger.warning("workspace_scan_timed_out", root=str(root))
                continue

            for repo_root, repo_type in found:
                key = path_key(repo_root)
                if key in seen:
                    continue
                seen.add(key)
                repositories.append(await self._build_info(repo_root, repo_type))

        self._logger.debug(
            "repositories_discovered",
            count=len(repositories),
            roots=[str(repo.path) for repo in repositories],
        )
        return tuple(repositories)

    async def _build_info(self, root: Path, repository_type: RepositoryType) -> RepositoryInfo:
        branch = None
        if repository_type is RepositoryType.GIT:
            branch = await self._read_branch(root)
        return RepositoryInfo.from_root(root, repository_type, branch=branch)

    async def _read_branch(self, root: Path) -> str | None:
        try:
            with anyio.fail_after(self._probe_timeout):
                return await anyio.to_thread.run_sync(read_branch, root, abandon_on_cancel=True)
        except TimeoutError:
            self._logger.warning("branch_read_timed_out", repository=str(root))
        except Exception as e:  # noqa: BLE001 - Branch is informational only
            self._logger.warning("branch_read_failed", repository=str(root), error=str(e))
        return None

    # =========================================================================
    # Lookup
    # =========================================================================

    async def get_repository_for_path(self, path: StrPath) -> RepositoryInfo | None:
        """Return the discovered repository containing ``path``.

        When roots nest, the deepest one wins.

        Returns:
            The owning repository, or None if no discovered root contains it.
        """
        return _deepest_match(await self.get_all_repositories(), path)

    async def get_primary_repository(
        self,
        active_file: StrPath | None = None,
    ) -> RepositoryInfo | None:
        """Return the repository the user is most likely working in.

        Preference order: the first root the host integration reports as
        active, the repository containing ``active_file``, then the first
        discovered repository.

        Returns:
            The primary repository, or None if the workspace has none.
        """
        repositories = await self.get_all_repositories()

        for root in await self._active_roots():
            key = path_key(root)
            for repo in repositories:
                if repo.key == key:
                    return replace(repo, is_active=True)

        if active_file is not None:
            match = _deepest_match(repositories, active_file)
            if match is not None:
                return replace(match, is_active=True)

        return repositories[0] if repositories else None

    async def _active_roots(self) -> tuple[Path, ...]:
        if self._integration is None:
            return ()
        try:
            with anyio.fail_after(self._probe_timeout):
                roots = await self._integration.active_roots()
        except TimeoutError:
            self._logger.warning("integration_timed_out", operation="active_roots")
            return ()
        except Exception as e:  # noqa: BLE001 - Host integration is optional
            self._logger.warning("integration_failed", operation="active_roots", error=str(e))
            return ()
        return tuple(roots)

    async def identify_repository(
        self,
        selected_files: Sequence[StrPath] | None = None,
        active_file: StrPath | None = None,
        ui_hints: Sequence[SelectionHint] | None = None,
    ) -> RepositoryContext:
        """Identify the repository a request targets.

        Preference order:
        1. The first selected file contained in a discovered repository
        2. The discovered repository containing ``active_file``
        3. UI hints: the hint's own root, else the nearest marker above it
        4. The primary repository
        5. The first discovered repository

        Args:
            selected_files: Explicit file selection.
            active_file: The active document.
            ui_hints: UI selection state.

        Returns:
            The resolution context.

        Raises:
            DetectionError: With kind INVALID_REPOSITORY when the workspace
                holds no repository at all.
        """
        selected = dedupe_paths(selected_files) if selected_files else None
        active = normalize_path(active_file) if active_file is not None else None
        repositories = await self.get_all_repositories()

        repository: RepositoryInfo | None = None
        for file in selected or ():
            repository = _deepest_match(repositories, file)
            if repository is not None:
                break

        if repository is None and active is not None:
            repository = _deepest_match(repositories, active)

        if repository is None:
            for hint in ui_hints or ():
                repository = await self._repository_from_hint(hint, repositories)
                if repository is not None:
                    break

        if repository is None:
            repository = await self.get_primary_repository(active)

        if repository is None and repositories:
            repository = repositories[0]

        if repository is None:
            msg = "No repository found in the workspace"
            raise DetectionError(DetectionErrorKind.INVALID_REPOSITORY, msg)

        anchor = selected[0] if selected else active
        context = RepositoryContext(
            repository=repository,
            selected_files=selected,
            active_file=active,
            working_directory=_working_directory(repository, anchor),
        )
        self._logger.debug(
            "repository_identified",
            repository=str(repository.path),
            working_directory=str(context.working_directory),
        )
        return context

    def context_for(self, group: RepositoryFiles) -> RepositoryContext:
        """Build the resolution context for an already-grouped set of files."""
        anchor = group.files[0] if group.files else None
        return RepositoryContext(
            repository=group.repository,
            selected_files=group.files or None,
            active_file=None,
            working_directory=_working_directory(group.repository, anchor),
        )

    async def _repository_from_hint(
        self,
        hint: SelectionHint,
        repositories: Sequence[RepositoryInfo],
    ) -> RepositoryInfo | None:
        if hint.source_control_root is not None:
            key = path_key(hint.source_control_root)
            for repo in repositories:
                if repo.key == key:
                    return repo
            root = normalize_path(hint.source_control_root)
            kind = marker_type(root) or RepositoryType.UNKNOWN
            return await self._build_info(root, kind)

        found = find_marker_root(hint.resource_path)
        if found is None:
            return None
        root, kind = found
        key = path_key(root)
        for repo in repositories:
            if repo.key == key:
                return repo
        return await self._build_info(root, kind)

    # =========================================================================
    # Grouping
    # =========================================================================

    async def group_files_by_repository(
        self,
        files: Sequence[StrPath],
    ) -> tuple[RepositoryFiles, ...]:
        """Group files under their owning repositories.

        Ownership is decided by containment in a discovered root, then by the
        nearest marker above the file. Files with no owner are logged and
        skipped.

        Returns:
            One group per repository, in order of first appearance.
        """
        repositories = await self.get_all_repositories()
        owners: dict[str, RepositoryInfo] = {}
        grouped: dict[str, list[Path]] = {}

        for file in dedupe_paths(files):
            owner = _deepest_match(repositories, file)
            if owner is None:
                found = find_marker_root(file)
                if found is not None:
                    owner = owners.get(path_key(found[0])) or await self._build_info(*found)
            if owner is None:
                self._logger.info("file_without_repository", file=str(file))
                continue
            _ = owners.setdefault(owner.key, owner)
            grouped.setdefault(owner.key, []).append(file)

        return tuple(
            RepositoryFiles(repository=owners[key], files=tuple(paths))
            for key, paths in grouped.items()
        )
