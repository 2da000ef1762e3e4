from pathlib import Path

from diffscope.utils import (
    decode_bytes,
    read_branch,
    read_recent_subjects,
    strip_refs_heads,
)
from tests.conftest import make_git_root


class TestDecodeBytes:
    def test_decodes_bytes(self) -> None:
        assert decode_bytes(b"main") == "main"

    def test_passes_strings_through(self) -> None:
        assert decode_bytes("main") == "main"

    def test_replaces_invalid_utf8(self) -> None:
        assert decode_bytes(b"\xffmain") == "�main"


class TestStripRefsHeads:
    def test_strips_prefix(self) -> None:
        assert strip_refs_heads(b"refs/heads/feature/x") == "feature/x"

    def test_keeps_other_refs(self) -> None:
        assert strip_refs_heads("refs/tags/v1") == "refs/tags/v1"

    def test_none(self) -> None:
        assert strip_refs_heads(None) is None


class TestReadBranch:
    def test_reads_unborn_branch(self, tmp_path: Path) -> None:
        root = make_git_root(tmp_path / "repo", branch="trunk")

        assert read_branch(root) == "trunk"

    def test_detached_head_has_no_branch(self, tmp_path: Path) -> None:
        root = make_git_root(tmp_path / "repo")
        (root / ".git" / "HEAD").write_text("0123456789abcdef0123456789abcdef01234567\n")

        assert read_branch(root) is None

    def test_not_a_repository(self, tmp_path: Path) -> None:
        assert read_branch(tmp_path) is None


class TestReadRecentSubjects:
    def test_empty_for_repository_without_commits(self, tmp_path: Path) -> None:
        root = make_git_root(tmp_path / "repo")

        assert read_recent_subjects(root) == ((), ())
