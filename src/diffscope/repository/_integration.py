"""Optional host integration protocol.

A host editor may expose its own view of the workspace's repositories and
native VCS providers. diffscope treats it as an optional capability: every
call is bounded by a timeout and any failure falls back to filesystem and
subprocess probing.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from diffscope.enums import RepositoryType
    from diffscope.scm import ScmProvider


@runtime_checkable
class HostIntegration(Protocol):
    """Host-provided native VCS integration."""

    async def active_roots(self) -> Sequence[Path]:
        """Return the repository roots the host currently reports as active."""
        ...

    async def create_provider(
        self,
        repository_type: RepositoryType,
        root: Path,
    ) -> ScmProvider | None:
        """Return a host-native provider for ``root``, or None if unsupported."""
        ...
