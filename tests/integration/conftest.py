import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from diffscope.cli import CLIContext, create_app


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not found")


def run_git(cwd: Path, *args: str) -> str:
    """Run a git command in the given directory and return its stdout."""
    result = subprocess.run(  # noqa: S603 - Safe: running git with controlled args
        ["git", *args],  # noqa: S607
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        msg = f"git {' '.join(args)} failed: {result.stderr}"
        raise RuntimeError(msg)
    return result.stdout


def init_git_repo(path: Path) -> Path:
    """Initialize a git repository with one commit."""
    path.mkdir(parents=True, exist_ok=True)
    run_git(path, "init")
    run_git(path, "config", "user.name", "Test User")
    run_git(path, "config", "user.email", "test@example.com")
    run_git(path, "config", "commit.gpgsign", "false")
    (path / "README.md").write_text("# Test Repository\n")
    run_git(path, "add", "README.md")
    run_git(path, "commit", "-m", "Initial commit")
    return path.resolve()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a real git repository under ``tmp_path/w/app``."""
    if shutil.which("git") is None:
        pytest.skip("git executable not found")
    return init_git_repo(tmp_path / "w" / "app")


@pytest.fixture
def diffscope_cli(console: Console) -> Callable[..., int]:
    """Run the CLI through its meta app and return the exit code."""
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app.meta(list(args))
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        finally:
            CLIContext.reset()
        return 0

    return _run
