# ruff: noqa: TC003  # Path needed at runtime for Protocol and dataclass fields
"""SCM provider protocol for type-safe dependency injection.

Every VCS backend, whether host-native, plugin-supplied or executable-backed,
satisfies :class:`ScmProvider`. Callers dispatch on
:attr:`ScmProvider.capabilities` rather than probing for optional methods.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from diffscope.enums import DiffTarget, ProviderOrigin, RepositoryType


@dataclass(frozen=True, slots=True)
class ProviderCapabilities:
    """What a provider can do and where it came from.

    Attributes:
        origin: How the provider was obtained.
        supports_staging: Whether ``diff_scope`` selects between staged and
            working-tree diffs. Providers without a staging area ignore it.
    """

    origin: ProviderOrigin
    supports_staging: bool


@dataclass(frozen=True, slots=True)
class RecentCommitMessages:
    """Recent commit subjects, newest first.

    Attributes:
        repository: Subjects of the repository's latest commits.
        user: Subjects of the current user's latest commits.
    """

    repository: tuple[str, ...] = ()
    user: tuple[str, ...] = ()


@runtime_checkable
class ScmProvider(Protocol):
    """Protocol for a VCS backend bound to one repository root.

    Example:
        >>> async def describe(provider: ScmProvider) -> str | None:
        ...     if not await provider.is_available():
        ...         return None
        ...     return await provider.get_diff()
    """

    diff_scope: DiffTarget
    """Ambient diff scope used by :meth:`get_diff` when staging is supported."""

    @property
    def type(self) -> RepositoryType:
        """The VCS this provider drives."""
        ...

    @property
    def root(self) -> Path:
        """The normalized repository root."""
        ...

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Capability flags for dispatch."""
        ...

    async def is_available(self) -> bool:
        """Check that the backend can serve this root right now."""
        ...

    async def init(self) -> None:
        """Prepare the provider for use."""
        ...

    async def get_diff(self, files: Sequence[Path] | None = None) -> str | None:
        """Return diff text for the current scope, or None when there is none."""
        ...

    async def changed_files(self, files: Sequence[Path] | None = None) -> list[str]:
        """Return repository-relative paths covered by :meth:`get_diff`."""
        ...

    async def commit(self, message: str, files: Sequence[Path] | None = None) -> None:
        """Commit ``files`` (or the pending changes) with ``message``."""
        ...

    async def get_recent_commit_messages(self) -> RecentCommitMessages:
        """Return recent commit subjects for prompt context."""
        ...


type ProviderFactory = Callable[[Path], ScmProvider | None]
"""Plugin hook that builds a provider for a root, or returns None."""
