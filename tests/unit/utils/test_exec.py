from pathlib import Path

import pytest

from diffscope.utils import CommandResult, command_available, run_command, truncate_output
from diffscope.utils._exec import MAX_OUTPUT_BYTES
from tests.conftest import ScriptedRunner


class TestTruncateOutput:
    def test_short_output_unchanged(self) -> None:
        assert truncate_output("hello") == "hello"

    def test_empty_output_unchanged(self) -> None:
        assert truncate_output("") == ""

    def test_long_output_truncated_with_marker(self) -> None:
        result = truncate_output("x" * (MAX_OUTPUT_BYTES + 10))

        assert result.startswith("x" * 10)
        assert result.endswith("[output truncated]")

    def test_does_not_split_multibyte_characters(self) -> None:
        result = truncate_output("é" * 10, max_bytes=5)

        assert result.startswith("éé")
        assert "�" not in result


class TestCommandResult:
    def test_ok_requires_zero_exit(self) -> None:
        assert CommandResult(command=("git",), success=True, exit_code=0).ok
        assert not CommandResult(command=("git",), success=True, exit_code=1).ok
        assert not CommandResult(command=("git",), success=False, timed_out=True).ok

    def test_display_joins_arguments(self) -> None:
        result = CommandResult(command=("git", "diff", "--cached"), success=True, exit_code=0)

        assert result.display == "git diff --cached"


@pytest.mark.anyio
class TestRunCommand:
    async def test_empty_command(self) -> None:
        result = await run_command([])

        assert not result.success
        assert result.error == "No command specified"

    async def test_missing_working_directory(self, tmp_path: Path) -> None:
        result = await run_command(["git", "status"], cwd=tmp_path / "gone")

        assert result.cwd_missing
        assert not result.ok

    async def test_missing_executable(self, tmp_path: Path) -> None:
        result = await run_command(["diffscope-no-such-executable"], cwd=tmp_path)

        assert result.command_not_found
        assert result.exit_code is None


@pytest.mark.anyio
class TestCommandAvailable:
    async def test_true_when_version_succeeds(self, runner: ScriptedRunner) -> None:
        runner.on("git", "--version", stdout="git version 2.45.0\n")

        assert await command_available(runner, "git")
        assert runner.commands() == [("git", "--version")]

    async def test_false_when_version_fails(self, runner: ScriptedRunner) -> None:
        runner.on("svn", "--version", exit_code=127)

        assert not await command_available(runner, "svn")
