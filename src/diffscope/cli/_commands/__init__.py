"""diffscope CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._diff import diff
from ._repos import repos
from ._scm import scm
from ._shared import (
    ConsoleNotifier,
    ExitCode,
    FormattableData,
    create_session,
    exit_with_error,
    format_json,
    get_console,
    get_error_console,
)
from ._staged import staged

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "ConsoleNotifier",
    "ExitCode",
    "FormattableData",
    "create_session",
    "diff",
    "exit_with_error",
    "format_json",
    "get_console",
    "get_error_console",
    "register_commands",
    "repos",
    "scm",
    "staged",
]


def register_commands(app: App) -> None:
    app.command(repos, name="repos")
    app.command(staged, name="staged")
    app.command(diff, name="diff")
    app.command(scm, name="scm")
