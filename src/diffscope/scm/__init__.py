"""SCM provider contract, reference providers and resolution.

Classes:
    ScmProvider: Runtime-checkable provider protocol.
    ScmProviderResolver: Resolves and caches providers per repository root.
    GitCommandProvider: Reference git provider (git executable + dulwich).
    SvnCommandProvider: Reference Subversion provider (svn executable).
    FakeProvider: In-memory provider for tests.

Example:
    >>> from diffscope.scm import ScmProviderResolver
    >>> resolver = ScmProviderResolver([Path("/w")])
    >>> provider = await resolver.detect_scm(repository_path=Path("/w/a"))
"""

from ._base import CommandProvider
from ._fake import FakeProvider
from ._git import GitCommandProvider
from ._protocol import ProviderCapabilities, ProviderFactory, RecentCommitMessages, ScmProvider
from ._resolver import DEFAULT_PROBE_TIMEOUT, NO_SCM, ScmProviderResolver
from ._svn import SvnCommandProvider, parse_svn_log, parse_svn_status

__all__ = [
    "DEFAULT_PROBE_TIMEOUT",
    "NO_SCM",
    "CommandProvider",
    "FakeProvider",
    "GitCommandProvider",
    "ProviderCapabilities",
    "ProviderFactory",
    "RecentCommitMessages",
    "ScmProvider",
    "ScmProviderResolver",
    "SvnCommandProvider",
    "parse_svn_log",
    "parse_svn_status",
]
