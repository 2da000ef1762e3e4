"""Git provider backed by the git executable and dulwich."""

from typing import TYPE_CHECKING

import anyio
import anyio.to_thread

from diffscope.enums import DiffTarget, RepositoryType
from diffscope.exceptions import ProviderError
from diffscope.utils import read_recent_subjects, read_status

from ._base import CommandProvider
from ._protocol import RecentCommitMessages

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

# Compared against for untracked files in ALL diffs; git maps it on Windows too
_NULL_DEVICE = "/dev/null"


class GitCommandProvider(CommandProvider):
    """Git provider for one working tree.

    Diffs and commits run through the git executable. Status and history are
    read with dulwich in a worker thread.

    ``diff_scope`` selects the diff: STAGED is ``git diff --cached``; ALL is
    the working tree against HEAD plus untracked files.
    """

    executable: str = "git"
    supports_staging: bool = True

    @property
    def type(self) -> RepositoryType:
        """Always GIT."""
        return RepositoryType.GIT

    async def is_available(self) -> bool:
        """Check that the root is inside a git working tree."""
        result = await self._execute("rev-parse", "--is-inside-work-tree")
        return result.ok and result.stdout.strip() == "true"

    async def _has_head(self) -> bool:
        result = await self._execute("rev-parse", "--verify", "--quiet", "HEAD")
        return result.ok

    async def get_diff(self, files: Sequence[Path] | None = None) -> str | None:
        """Return the diff for the current ``diff_scope``.

        Args:
            files: Limit the diff to these files.

        Returns:
            Diff text, or None when there are no changes in scope.

        Raises:
            ProviderError: If git fails.
        """
        paths = self._relative(files)
        if files and not paths:
            return None

        if self.diff_scope is DiffTarget.STAGED:
            diff = await self._run("diff", "--cached", "--", *paths)
        else:
            diff = await self._working_tree_diff(paths)

        self._logger.debug("diff_fetched", scope=str(self.diff_scope), size=len(diff))
        return diff if diff.strip() else None

    async def _working_tree_diff(self, paths: list[str]) -> str:
        if await self._has_head():
            tracked = await self._run("diff", "HEAD", "--", *paths)
        else:
            # No commits yet: index against the empty tree, then worktree against index
            tracked = await self._run("diff", "--cached", "--", *paths)
            tracked += await self._run("diff", "--", *paths)

        listing = await self._run("ls-files", "--others", "--exclude-standard", "-z", "--", *paths)
        untracked = [name for name in listing.split("\0") if name]

        parts = [tracked]
        for name in untracked:
            # --no-index exits 1 when the files differ
            parts.append(await self._run("diff", "--no-index", "--", _NULL_DEVICE, name, ok_codes=(0, 1)))
        return "".join(parts)

    async def changed_files(self, files: Sequence[Path] | None = None) -> list[str]:
        """Return repository-relative paths covered by :meth:`get_diff`.

        Raises:
            ProviderError: If the repository status cannot be read.
        """
        try:
            with anyio.fail_after(self._timeout_ms / 1000):
                status = await anyio.to_thread.run_sync(
                    read_status, self.root, abandon_on_cancel=True
                )
        except TimeoutError as e:
            msg = f"Repository status read timed out after {self._timeout_ms}ms"
            raise ProviderError(msg, repository_path=self.root) from e
        except Exception as e:
            msg = "Failed to read repository status"
            raise ProviderError(msg, repository_path=self.root) from e

        if self.diff_scope is DiffTarget.STAGED:
            changed = set(status.staged)
        else:
            changed = {*status.staged, *status.unstaged, *status.untracked}

        if files:
            wanted = {path.replace("\\", "/") for path in self._relative(files)}
            changed &= wanted
        return sorted(changed)

    async def commit(self, message: str, files: Sequence[Path] | None = None) -> None:
        """Commit the index, or exactly ``files`` when given.

        Raises:
            ProviderError: If staging or committing fails.
        """
        paths = self._relative(files)
        if paths:
            _ = await self._run("add", "--", *paths)
            _ = await self._run("commit", "-m", message, "--", *paths)
        else:
            _ = await self._run("commit", "-m", message)
        self._logger.info("committed", files=len(paths))

    async def get_recent_commit_messages(self) -> RecentCommitMessages:
        """Return the latest repository and user commit subjects.

        Failures are logged and produce empty lists.
        """
        try:
            with anyio.fail_after(self._timeout_ms / 1000):
                repository, user = await anyio.to_thread.run_sync(
                    read_recent_subjects, self.root, abandon_on_cancel=True
                )
        except TimeoutError:
            self._logger.warning("recent_messages_timed_out", timeout_ms=self._timeout_ms)
            return RecentCommitMessages()
        except Exception as e:  # noqa: BLE001 - History is optional prompt context
            self._logger.warning("recent_messages_failed", error=str(e))
            return RecentCommitMessages()
        return RecentCommitMessages(repository=repository, user=user)
