# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- JSON output formatting
- Console utilities for error handling
- Session construction from the CLI context
"""

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

from diffscope.diff import NoticeLevel
from diffscope.session import Session
from diffscope.utils import null_logger

if TYPE_CHECKING:
    from rich.console import Console

    from diffscope.cli._context import CLIContext
    from diffscope.diff import SelectionNotice

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any]

__all__ = [
    "ConsoleNotifier",
    "ExitCode",
    "FormattableData",
    "create_session",
    "exit_with_error",
    "format_json",
    "get_console",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Standard exit codes for diffscope CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    NOT_FOUND = 2
    RETRIEVAL_ERROR = 3
    INTERNAL_ERROR = 4


def format_json(data: FormattableData | list[FormattableData], *, indent: bool = True) -> str:
    """Format data as JSON.

    Paths and enum members are written as strings.

    Args:
        data: Value to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    import orjson

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options, default=str).decode("utf-8")


def get_console() -> Console:
    """Get a Rich console for standard output."""
    from rich.console import Console

    return Console(highlight=False)


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(code)


def create_session(ctx: CLIContext) -> Session:
    """Build an engine session for the context's workspace."""
    return Session.create(
        ctx.workspace_roots,
        config=ctx.config,
        notifier=None if ctx.quiet else ConsoleNotifier(),
        logger=ctx.logger or null_logger(),
    )


class ConsoleNotifier:
    """Notifier that prints selection notices to stderr."""

    def __init__(self, console: Console | None = None) -> None:
        self._console: Console = console or get_error_console()

    def notify(self, notice: SelectionNotice) -> None:
        style = "yellow" if notice.level is NoticeLevel.WARNING else "dim"
        self._console.print(f"[{style}]{notice}[/{style}]")
