"""Subversion provider backed by the svn executable."""

import re
from typing import TYPE_CHECKING

from diffscope.enums import RepositoryType
from diffscope.exceptions import ProviderError

from ._base import CommandProvider
from ._protocol import RecentCommitMessages

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

# Number of log entries read for recent-message lookups
RECENT_LOG_LIMIT: int = 5

_LOG_SEPARATOR = re.compile(r"^-{72}$", re.MULTILINE)
_LOG_HEADER = re.compile(r"^r\d+\s+\|")

# First-column status codes for versioned changes that `svn diff` reports
_CHANGED_CODES = frozenset("AMDRC")


def parse_svn_log(log: str) -> list[str]:
    """Extract commit subjects from plain ``svn log`` output.

    Args:
        log: Output of ``svn log``.

    Returns:
        The first message line of each entry, newest first.

    Example:
        >>> parse_svn_log(
        ...     "-" * 72 + "\\nr2 | ana | 2024-01-01 | 1 line\\n\\nFix parser\\n" + "-" * 72
        ... )
        ['Fix parser']
    """
    subjects: list[str] = []
    for raw_entry in _LOG_SEPARATOR.split(log):
        lines = raw_entry.strip().splitlines()
        if not lines or not _LOG_HEADER.match(lines[0]):
            continue
        message = "\n".join(lines[1:]).strip()
        if message:
            subjects.append(message.splitlines()[0])
    return subjects


def parse_svn_status(output: str) -> list[str]:
    """Extract paths with versioned content or property changes.

    Args:
        output: Output of ``svn status``.

    Returns:
        Working-copy-relative paths, in svn's order.
    """
    changed: list[str] = []
    for line in output.splitlines():
        if len(line) < 9:  # noqa: PLR2004
            continue
        content, props = line[0], line[1]
        if content in _CHANGED_CODES or props in {"M", "C"}:
            changed.append(line[8:].strip().replace("\\", "/"))
    return changed


class SvnCommandProvider(CommandProvider):
    """Subversion provider for one working copy.

    Subversion has no staging area; ``diff_scope`` is accepted and ignored.
    """

    executable: str = "svn"
    supports_staging: bool = False

    @property
    def type(self) -> RepositoryType:
        """Always SVN."""
        return RepositoryType.SVN

    async def is_available(self) -> bool:
        """Check that the root is inside a Subversion working copy."""
        result = await self._execute("info", "--show-item", "wc-root")
        return result.ok and bool(result.stdout.strip())

    async def get_diff(self, files: Sequence[Path] | None = None) -> str | None:
        """Return ``svn diff`` output, or None when there are no changes.

        Raises:
            ProviderError: If svn fails.
        """
        paths = self._relative(files)
        if files and not paths:
            return None
        diff = await self._run("diff", *paths)
        self._logger.debug("diff_fetched", size=len(diff))
        return diff if diff.strip() else None

    async def changed_files(self, files: Sequence[Path] | None = None) -> list[str]:
        """Return working-copy-relative paths with versioned changes.

        Raises:
            ProviderError: If svn fails.
        """
        return parse_svn_status(await self._run("status", *self._relative(files)))

    async def commit(self, message: str, files: Sequence[Path] | None = None) -> None:
        """Commit ``files``, or the whole working copy when none are given.

        Raises:
            ProviderError: If the commit fails.
        """
        paths = self._relative(files)
        _ = await self._run("commit", "-m", message, *paths)
        self._logger.info("committed", files=len(paths))

    async def get_recent_commit_messages(self) -> RecentCommitMessages:
        """Return the latest repository and user commit subjects.

        The user is the last author recorded in the working copy. Failures
        are logged and produce empty lists.
        """
        limit = str(RECENT_LOG_LIMIT)
        try:
            repository = parse_svn_log(await self._run("log", "-l", limit))
        except ProviderError as e:
            self._logger.warning("recent_messages_failed", error=str(e))
            return RecentCommitMessages()

        user: list[str] = []
        try:
            author = (await self._run("info", "--show-item", "last-changed-author")).strip()
            if author:
                user = parse_svn_log(await self._run("log", "-l", limit, "--search", author))
        except ProviderError as e:
            self._logger.warning("user_messages_failed", error=str(e))

        return RecentCommitMessages(repository=tuple(repository), user=tuple(user))
