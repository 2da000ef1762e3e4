# ruff: noqa: TC003  # Path needed at runtime for dataclass fields
"""Fake provider for testing.

This module provides a FakeProvider class that implements ScmProvider for use
in tests without a VCS executable or a real repository.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import anyio

from diffscope.enums import DiffTarget, ProviderOrigin, RepositoryType
from diffscope.exceptions import ProviderError

from ._protocol import ProviderCapabilities, RecentCommitMessages


@dataclass(slots=True, eq=False)
class FakeProvider:
    """Fake SCM provider for testing.

    Diff text and changed files are configured per scope. Call counters and
    recorded scopes let tests assert how the provider was driven.

    Example:
        >>> provider = FakeProvider(diffs={DiffTarget.STAGED: "diff --git a/x b/x"})
        >>> provider.diff_scope = DiffTarget.STAGED
        >>> anyio.run(provider.get_diff)
        'diff --git a/x b/x'
    """

    root: Path = field(default_factory=lambda: Path("/fake/repo"))
    type: RepositoryType = RepositoryType.GIT
    capabilities: ProviderCapabilities = field(
        default_factory=lambda: ProviderCapabilities(
            origin=ProviderOrigin.EXECUTABLE,
            supports_staging=True,
        )
    )
    diff_scope: DiffTarget = DiffTarget.ALL
    diffs: dict[DiffTarget, str] = field(default_factory=dict)
    files: dict[DiffTarget, list[str]] = field(default_factory=dict)
    available: bool = True
    probe_delay: float = 0.0
    fail_diff: bool = False
    fail_init: bool = False
    recent: RecentCommitMessages = field(default_factory=RecentCommitMessages)
    commits: list[tuple[str, tuple[Path, ...]]] = field(default_factory=list)
    scopes_seen: list[DiffTarget] = field(default_factory=list)
    availability_checks: int = 0
    init_calls: int = 0

    async def is_available(self) -> bool:
        self.availability_checks += 1
        if self.probe_delay:
            await anyio.sleep(self.probe_delay)
        return self.available

    async def init(self) -> None:
        self.init_calls += 1
        if self.fail_init:
            msg = "fake init failure"
            raise ProviderError(msg, repository_path=self.root)

    async def get_diff(self, files: Sequence[Path] | None = None) -> str | None:
        self.scopes_seen.append(self.diff_scope)
        if self.fail_diff:
            msg = "fake diff failure"
            raise ProviderError(msg, repository_path=self.root)
        scope = self.diff_scope if self.capabilities.supports_staging else DiffTarget.ALL
        return self.diffs.get(scope) or None

    async def changed_files(self, files: Sequence[Path] | None = None) -> list[str]:
        scope = self.diff_scope if self.capabilities.supports_staging else DiffTarget.ALL
        return list(self.files.get(scope, []))

    async def commit(self, message: str, files: Sequence[Path] | None = None) -> None:
        self.commits.append((message, tuple(files or ())))

    async def get_recent_commit_messages(self) -> RecentCommitMessages:
        return self.recent
