"""Shared test fixtures for diffscope tests."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path

import pytest
from dulwich.repo import Repo
from rich.console import Console

from diffscope.utils import DEFAULT_TIMEOUT_MS, CommandResult


@dataclass(slots=True)
class ManualClock:
    """Clock that only moves when told to."""

    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass(frozen=True, slots=True)
class RecordedCall:
    """One invocation seen by ScriptedRunner."""

    args: tuple[str, ...]
    cwd: Path | None
    timeout_ms: int


type Responder = Callable[[tuple[str, ...], Path | None], CommandResult]


@dataclass(slots=True)
class ScriptedRunner:
    """Command runner answering from a table of argument prefixes.

    The longest matching prefix wins. Unmatched commands succeed with empty
    output.
    """

    responses: dict[tuple[str, ...], CommandResult | Responder] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)

    def on(self, *prefix: str, stdout: str = "", exit_code: int = 0, stderr: str = "") -> None:
        self.responses[prefix] = completed(prefix, stdout=stdout, exit_code=exit_code, stderr=stderr)

    def on_result(self, *prefix: str, result: CommandResult | Responder) -> None:
        self.responses[prefix] = result

    def commands(self) -> list[tuple[str, ...]]:
        return [call.args for call in self.calls]

    async def __call__(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> CommandResult:
        command = tuple(args)
        self.calls.append(RecordedCall(args=command, cwd=cwd, timeout_ms=timeout_ms))
        matches = [prefix for prefix in self.responses if command[: len(prefix)] == prefix]
        if not matches:
            return completed(command)
        response = self.responses[max(matches, key=len)]
        if isinstance(response, CommandResult):
            return replace(response, command=command)
        return response(command, cwd)


def completed(
    command: Sequence[str],
    *,
    stdout: str = "",
    exit_code: int = 0,
    stderr: str = "",
) -> CommandResult:
    """Build a CommandResult for a process that ran to completion."""
    return CommandResult(
        command=tuple(command),
        success=True,
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
    )


def make_git_root(path: Path, *, branch: str = "main") -> Path:
    """Create an empty git repository at ``path`` with dulwich."""
    path.mkdir(parents=True, exist_ok=True)
    repo = Repo.init(str(path))
    try:
        repo.refs.set_symbolic_ref(b"HEAD", f"refs/heads/{branch}".encode())
    finally:
        repo.close()
    return path


def make_svn_root(path: Path) -> Path:
    """Create a directory that looks like a Subversion working copy root."""
    (path / ".svn").mkdir(parents=True, exist_ok=True)
    return path


@dataclass(frozen=True, slots=True)
class Workspace:
    """Paths for a multi-repository test workspace."""

    root: Path
    a: Path
    b: Path
    svn: Path
    plain: Path


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def runner() -> ScriptedRunner:
    return ScriptedRunner()


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    """Create a workspace with two git repos, one svn working copy and a plain folder.

    Structure:
        tmp_path/w/
            a/.git/
            b/.git/
            legacy/.svn/
            notes/
    """
    root = tmp_path / "w"
    a = make_git_root(root / "a")
    b = make_git_root(root / "b", branch="develop")
    svn = make_svn_root(root / "legacy")
    plain = root / "notes"
    plain.mkdir()
    (a / "src").mkdir()
    (a / "src" / "x.py").write_text("print('x')\n")
    return Workspace(root=root.resolve(), a=a.resolve(), b=b.resolve(), svn=svn.resolve(), plain=plain.resolve())


@pytest.fixture
def console() -> Console:
    return Console(
        width=100,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
