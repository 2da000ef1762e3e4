"""Async command execution with timeout handling and output capture.

Every VCS probe in diffscope goes through a :class:`CommandRunner`. The
default runner, :func:`run_command`, wraps ``anyio.run_process`` in an
``anyio.fail_after`` race and never raises for ordinary process failures;
callers inspect the returned :class:`CommandResult` instead.
"""

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import anyio

# Default timeout in milliseconds
DEFAULT_TIMEOUT_MS: int = 10000  # 10 seconds

# Maximum output size in bytes kept in log records
MAX_OUTPUT_BYTES: int = 4096

# Keep git from prompting or taking optional index locks during probes
_QUIET_VCS_ENV: dict[str, str] = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_OPTIONAL_LOCKS": "0",
    "LC_ALL": "C",
}


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result from command execution.

    Attributes:
        command: The argument vector that was run.
        success: Whether the process ran to completion (any exit code).
        exit_code: Process exit code, or None if execution failed.
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        error: Error message if execution failed (timeout, not found, etc.).
        timed_out: Whether the command timed out.
        command_not_found: Whether the executable was not found.
        permission_denied: Whether the OS refused to run the command.
        cwd_missing: Whether the working directory did not exist.
    """

    command: tuple[str, ...]
    success: bool
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    timed_out: bool = False
    command_not_found: bool = False
    permission_denied: bool = False
    cwd_missing: bool = False

    @property
    def ok(self) -> bool:
        """True when the process completed with exit code 0."""
        return self.success and self.exit_code == 0

    @property
    def display(self) -> str:
        """The command as a single line for log records."""
        return " ".join(self.command)


class CommandRunner(Protocol):
    """Callable that runs one external command.

    Implementations must return a :class:`CommandResult` for process-level
    failures rather than raising.
    """

    async def __call__(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> CommandResult: ...


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max bytes, preserving valid UTF-8.

    Args:
        output: The string to truncate.
        max_bytes: Maximum size in bytes.

    Returns:
        Truncated string with indicator if truncated.
    """
    if not output:
        return output

    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output

    # Use 'ignore' to skip incomplete multi-byte sequences at the end
    truncated = encoded[:max_bytes].decode("utf-8", errors="ignore")
    return truncated + "\n... [output truncated]"


async def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Execute a command without a shell.

    Handles timeouts, missing executables and missing working directories,
    and captures stdout/stderr. A timed-out process is cancelled by anyio.

    Args:
        args: The argument vector.
        cwd: Working directory for execution.
        timeout_ms: Execution timeout in milliseconds.
        env: Additional environment variables to set.

    Returns:
        CommandResult with execution outcome.
    """
    command = tuple(args)
    if not command:
        return CommandResult(command=command, success=False, error="No command specified")

    if cwd is not None and not cwd.is_dir():
        return CommandResult(
            command=command,
            success=False,
            error=f"Working directory does not exist: {cwd}",
            cwd_missing=True,
        )

    merged_env = {**os.environ, **_QUIET_VCS_ENV, **(env or {})}
    timeout_seconds = timeout_ms / 1000.0

    try:
        with anyio.fail_after(timeout_seconds):
            completed = await anyio.run_process(
                list(command),
                cwd=cwd,
                env=merged_env,
                check=False,
            )
    except TimeoutError:
        return CommandResult(
            command=command,
            success=False,
            error=f"Command timed out after {timeout_seconds}s",
            timed_out=True,
        )
    except FileNotFoundError as e:
        return CommandResult(
            command=command,
            success=False,
            error=str(e),
            command_not_found=True,
        )
    except PermissionError as e:
        return CommandResult(
            command=command,
            success=False,
            error=str(e),
            permission_denied=True,
        )
    except OSError as e:
        return CommandResult(command=command, success=False, error=str(e))

    return CommandResult(
        command=command,
        success=True,
        exit_code=completed.returncode,
        stdout=completed.stdout.decode("utf-8", errors="replace"),
        stderr=completed.stderr.decode("utf-8", errors="replace"),
    )


async def command_available(
    runner: CommandRunner,
    executable: str,
    *,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> bool:
    """Check whether ``executable --version`` runs successfully.

    Args:
        runner: The command runner to use.
        executable: Executable name to probe.
        timeout_ms: Probe timeout in milliseconds.

    Returns:
        True if the executable is installed and answers.
    """
    result = await runner([executable, "--version"], timeout_ms=timeout_ms)
    return result.ok
