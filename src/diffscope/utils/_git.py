"""Common git helper functions built on dulwich.

These helpers are synchronous and may block on disk I/O; async callers run
them through ``anyio.to_thread.run_sync``.
"""

from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from dulwich import porcelain
from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

# Number of commits scanned for recent-message lookups
RECENT_COMMIT_LIMIT: int = 5


@dataclass(frozen=True, slots=True)
class WorkingTreeStatus:
    """Repository-relative file sets from ``porcelain.status``.

    Attributes:
        staged: Files added, deleted or modified in the index.
        unstaged: Tracked files modified in the working tree.
        untracked: Files unknown to the index.
    """

    staged: tuple[str, ...]
    unstaged: tuple[str, ...]
    untracked: tuple[str, ...]


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def strip_refs_heads(branch: bytes | str | None) -> str | None:
    """Strip refs/heads/ prefix from a branch reference.

    Args:
        branch: Branch reference (bytes or str), possibly with refs/heads/ prefix.

    Returns:
        Branch name without prefix, or None if input is None.
    """
    if branch is None:
        return None
    branch_str = decode_bytes(branch)
    if branch_str.startswith("refs/heads/"):
        return branch_str[11:]
    return branch_str


def read_branch(root: Path) -> str | None:
    """Read the checked-out branch of the repository at ``root``.

    Args:
        root: The working tree root.

    Returns:
        Branch name, or None for a detached HEAD or an unreadable repository.
    """
    try:
        repo = Repo(str(root))
    except NotGitRepository:
        return None

    with closing(repo):
        head_ref = repo.refs.get_symrefs().get(b"HEAD")
        if head_ref is None or not head_ref.startswith(b"refs/heads/"):
            return None
        return strip_refs_heads(head_ref)


def read_status(root: Path) -> WorkingTreeStatus:
    """Collect staged, unstaged and untracked files for ``root``.

    Args:
        root: The working tree root.

    Returns:
        WorkingTreeStatus with sorted repository-relative paths.

    Raises:
        NotGitRepository: If ``root`` is not a git working tree.
    """
    with closing(Repo(str(root))) as repo:
        raw = porcelain.status(repo)

    staged: set[str] = set()
    staged_dict = raw.staged  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
    for change_type in ("add", "delete", "modify"):
        files: list[bytes] = staged_dict.get(change_type, [])  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        staged.update(decode_bytes(f) for f in files)  # pyright: ignore[reportUnknownArgumentType,reportUnknownVariableType]

    unstaged = {decode_bytes(f) for f in raw.unstaged}  # pyright: ignore[reportUnknownMemberType,reportUnknownArgumentType,reportUnknownVariableType]
    untracked = {decode_bytes(f) for f in raw.untracked}  # pyright: ignore[reportUnknownMemberType,reportUnknownArgumentType,reportUnknownVariableType]

    return WorkingTreeStatus(
        staged=tuple(sorted(staged)),
        unstaged=tuple(sorted(unstaged)),
        untracked=tuple(sorted(untracked)),
    )


def read_user_name(repo: Repo) -> str | None:
    """Read ``user.name`` from the repository's config stack.

    Args:
        repo: The repository instance.

    Returns:
        The configured user name, or None if unset.
    """
    try:
        value = repo.get_config_stack().get((b"user",), b"name")
    except KeyError:
        return None
    return decode_bytes(value).strip() or None


def _subject(message: bytes) -> str:
    text = decode_bytes(message)
    return text.split("\n", 1)[0].strip()


def _author_name(author: bytes) -> str:
    author_str = decode_bytes(author)
    if "<" in author_str:
        return author_str.rsplit("<", 1)[0].strip()
    return author_str.strip()


def read_recent_subjects(
    root: Path,
    *,
    limit: int = RECENT_COMMIT_LIMIT,
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Read recent commit subjects for the repository and for the current user.

    The user's commits are matched by author name against ``user.name``.

    Args:
        root: The working tree root.
        limit: Maximum number of subjects in each list.

    Returns:
        Tuple of (repository subjects, user subjects), newest first. Both are
        empty for a repository without commits.
    """
    with closing(Repo(str(root))) as repo:
        try:
            head = repo.head()
        except KeyError:
            return (), ()

        repository_subjects: list[str] = []
        for entry in repo.get_walker(include=[head], max_entries=limit):
            repository_subjects.append(_subject(cast("bytes", entry.commit.message)))

        user_name = read_user_name(repo)
        if user_name is None:
            return tuple(repository_subjects), ()

        user_subjects: list[str] = []
        for entry in repo.get_walker(include=[head]):
            if _author_name(cast("bytes", entry.commit.author)) == user_name:
                user_subjects.append(_subject(cast("bytes", entry.commit.message)))
                if len(user_subjects) >= limit:
                    break

    return tuple(repository_subjects), tuple(user_subjects)
