"""Repository discovery and identification.

Classes:
    RepositoryRegistry: Discovers roots and identifies the target repository.
    HostIntegration: Optional host-provided VCS integration protocol.

Models:
    RepositoryInfo: A discovered version-controlled root.
    RepositoryContext: The repository a resolution call settled on.
    SelectionHint: UI selection state for one resource.
    RepositoryFiles: Files grouped under their owning repository.
"""

from ._integration import HostIntegration
from ._models import RepositoryContext, RepositoryFiles, RepositoryInfo, SelectionHint
from ._registry import DEFAULT_PROBE_TIMEOUT, DEFAULT_REPOSITORY_TTL, RepositoryRegistry

__all__ = [
    "DEFAULT_PROBE_TIMEOUT",
    "DEFAULT_REPOSITORY_TTL",
    "HostIntegration",
    "RepositoryContext",
    "RepositoryFiles",
    "RepositoryInfo",
    "RepositoryRegistry",
    "SelectionHint",
]
