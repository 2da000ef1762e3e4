"""End-to-end tests against real git repositories."""

from pathlib import Path

import pytest

from diffscope.enums import DiffTarget, RepositoryType
from diffscope.scm import GitCommandProvider
from diffscope.session import Session
from diffscope.staged import StagedContentDetector
from diffscope.utils import read_status
from tests.integration.conftest import init_git_repo, requires_git, run_git

pytestmark = [pytest.mark.anyio, requires_git]


class TestStagedDetection:
    async def test_clean_repository_recommends_all(self, git_repo: Path) -> None:
        result = await StagedContentDetector().detect_staged_content(git_repo)

        assert not result.has_staged_content
        assert result.recommended_target is DiffTarget.ALL
        assert not result.failed

    async def test_staged_file_is_reported(self, git_repo: Path) -> None:
        (git_repo / "app.py").write_text("print('hi')\n")
        run_git(git_repo, "add", "app.py")

        result = await StagedContentDetector().detect_staged_content(git_repo)

        assert result.staged_files == (git_repo / "app.py",)
        assert result.recommended_target is DiffTarget.STAGED

    async def test_staged_details(self, git_repo: Path) -> None:
        (git_repo / "README.md").write_text("# Test Repository\nmore\nlines\n")
        run_git(git_repo, "add", "README.md")

        details = await StagedContentDetector().get_staged_details(git_repo)

        assert details.summary.additions == 2
        assert details.summary.deletions == 0
        assert details.summary.files == 1

    async def test_plain_directory_falls_back(self, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        result = await StagedContentDetector().detect_staged_content(plain)

        assert result.failed
        assert result.recommended_target is DiffTarget.ALL

    async def test_missing_directory_falls_back(self, tmp_path: Path) -> None:
        result = await StagedContentDetector().detect_staged_content(tmp_path / "gone")

        assert result.failed
        assert not result.has_staged_content


class TestGitProvider:
    async def test_diff_scopes(self, git_repo: Path) -> None:
        (git_repo / "staged.txt").write_text("staged\n")
        run_git(git_repo, "add", "staged.txt")
        (git_repo / "README.md").write_text("# Changed\n")
        (git_repo / "untracked.txt").write_text("untracked\n")
        provider = GitCommandProvider(git_repo)
        await provider.init()

        provider.diff_scope = DiffTarget.STAGED
        staged_diff = await provider.get_diff()
        staged_files = await provider.changed_files()
        provider.diff_scope = DiffTarget.ALL
        all_diff = await provider.get_diff()
        all_files = await provider.changed_files()

        assert staged_diff is not None
        assert "staged.txt" in staged_diff
        assert "README.md" not in staged_diff
        assert staged_files == ["staged.txt"]
        assert all_diff is not None
        assert "README.md" in all_diff
        assert "untracked.txt" in all_diff
        assert all_files == ["README.md", "staged.txt", "untracked.txt"]

    async def test_diff_limited_to_files(self, git_repo: Path) -> None:
        (git_repo / "README.md").write_text("# Changed\n")
        (git_repo / "other.txt").write_text("other\n")
        provider = GitCommandProvider(git_repo)

        diff = await provider.get_diff([git_repo / "README.md"])
        files = await provider.changed_files([git_repo / "README.md"])

        assert diff is not None
        assert "other.txt" not in diff
        assert files == ["README.md"]

    async def test_commit_and_history(self, git_repo: Path) -> None:
        (git_repo / "feature.py").write_text("x = 1\n")
        provider = GitCommandProvider(git_repo)

        await provider.commit("Add feature module", [git_repo / "feature.py"])
        messages = await provider.get_recent_commit_messages()
        status = read_status(git_repo)

        assert messages.repository == ("Add feature module", "Initial commit")
        assert messages.user == ("Add feature module", "Initial commit")
        assert "feature.py" not in status.untracked

    async def test_repository_without_commits(self, tmp_path: Path) -> None:
        root = tmp_path / "fresh"
        root.mkdir()
        run_git(root, "init")
        (root / "new.txt").write_text("hello\n")
        provider = GitCommandProvider(root)

        diff = await provider.get_diff()
        messages = await provider.get_recent_commit_messages()

        assert diff is not None
        assert "new.txt" in diff
        assert messages.repository == ()


class TestSession:
    async def test_resolves_staged_diff_in_multi_repo_workspace(self, tmp_path: Path) -> None:
        workspace = tmp_path / "w"
        first = init_git_repo(workspace / "first")
        second = init_git_repo(workspace / "second")
        (second / "lib.py").write_text("y = 2\n")
        run_git(second, "add", "lib.py")

        async with Session.create([workspace]) as session:
            repositories = await session.registry.get_all_repositories()
            resolution = await session.resolve_diff([second / "lib.py"])

        assert [repo.path for repo in repositories] == [first, second]
        assert all(repo.type is RepositoryType.GIT for repo in repositories)
        assert resolution.context.repository.path == second
        assert resolution.target is DiffTarget.STAGED
        assert resolution.diff is not None
        assert "lib.py" in resolution.diff.content
        assert resolution.diff.files == ("lib.py",)

    async def test_staged_diff_covers_exactly_the_staged_files(self, git_repo: Path) -> None:
        (git_repo / "one.py").write_text("a = 1\n")
        (git_repo / "two.py").write_text("b = 2\n")
        run_git(git_repo, "add", "one.py", "two.py")

        async with Session.create([git_repo.parent]) as session:
            resolution = await session.resolve_diff(active_file=git_repo / "one.py")

        assert resolution.detection.staged_file_count == 2
        assert resolution.target is DiffTarget.STAGED
        assert resolution.diff is not None
        assert resolution.diff.files == ("one.py", "two.py")
        assert "README.md" not in resolution.diff.content

    async def test_unstaged_work_resolves_to_all(self, git_repo: Path) -> None:
        (git_repo / "README.md").write_text("# Edited\n")

        async with Session.create([git_repo.parent]) as session:
            resolution = await session.resolve_diff(active_file=git_repo / "README.md")

        assert resolution.target is DiffTarget.ALL
        assert resolution.diff is not None
        assert "# Edited" in resolution.diff.content
