"""Shared base for executable-backed providers."""

import os
from typing import TYPE_CHECKING

from diffscope.enums import DiffTarget, ProviderOrigin
from diffscope.exceptions import ProviderError
from diffscope.utils import (
    DEFAULT_TIMEOUT_MS,
    command_available,
    is_within,
    normalize_path,
    null_logger,
    run_command,
    truncate_output,
)

from ._protocol import ProviderCapabilities

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from diffscope.utils import CommandResult, CommandRunner, StrPath


class CommandProvider:
    """Base class for providers that drive a VCS command-line executable.

    Subclasses set ``executable`` and implement the provider operations on
    top of :meth:`_run`.
    """

    executable: str = ""
    supports_staging: bool = False

    def __init__(
        self,
        root: StrPath,
        *,
        runner: CommandRunner = run_command,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        origin: ProviderOrigin = ProviderOrigin.EXECUTABLE,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            root: Repository root.
            runner: Command runner used for every invocation.
            timeout_ms: Bound on each command, in milliseconds.
            origin: How the provider was obtained.
            logger: Logger to bind; records are dropped when None.
        """
        self._root: Path = normalize_path(root)
        self._runner: CommandRunner = runner
        self._timeout_ms: int = timeout_ms
        self._capabilities: ProviderCapabilities = ProviderCapabilities(
            origin=origin,
            supports_staging=self.supports_staging,
        )
        self._logger: FilteringBoundLogger = (logger or null_logger()).bind(
            component="scm_provider",
            executable=self.executable,
            repository=str(self._root),
        )
        self.diff_scope: DiffTarget = DiffTarget.ALL

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root={str(self._root)!r})"

    @property
    def root(self) -> Path:
        """The normalized repository root."""
        return self._root

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Capability flags for dispatch."""
        return self._capabilities

    async def init(self) -> None:
        """Verify the executable is installed.

        Raises:
            ProviderError: If ``<executable> --version`` fails.
        """
        if not await command_available(self._runner, self.executable, timeout_ms=self._timeout_ms):
            msg = f"{self.executable} executable is not available"
            raise ProviderError(msg, command=(self.executable, "--version"), repository_path=self._root)

    def _relative(self, files: Sequence[Path] | None) -> list[str]:
        """Convert files inside the root to root-relative command arguments.

        Files outside the root are dropped and logged.
        """
        if not files:
            return []
        relative: list[str] = []
        for file in files:
            if not is_within(file, self._root):
                self._logger.info("file_outside_repository", file=str(file))
                continue
            relative.append(os.path.relpath(normalize_path(file), self._root))
        return relative

    async def _execute(self, *args: str) -> CommandResult:
        return await self._runner([self.executable, *args], cwd=self._root, timeout_ms=self._timeout_ms)

    async def _run(self, *args: str, ok_codes: tuple[int, ...] = (0,)) -> str:
        """Run a command in the root and return its stdout.

        Raises:
            ProviderError: If the command cannot run or exits with a code
                outside ``ok_codes``.
        """
        result = await self._execute(*args)
        if result.success and result.exit_code in ok_codes:
            return result.stdout

        self._logger.warning(
            "command_failed",
            command=result.display,
            exit_code=result.exit_code,
            error=result.error,
            stderr=truncate_output(result.stderr),
        )
        if result.timed_out:
            msg = f"{self.executable} command timed out"
        elif result.exit_code is not None:
            msg = f"{self.executable} command failed with exit code {result.exit_code}"
        else:
            msg = f"{self.executable} command could not be run"
        raise ProviderError(msg, command=result.command, repository_path=self._root)
