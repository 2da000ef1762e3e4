"""The command-line interface for diffscope."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from diffscope.config import safe_load_config
from diffscope.exceptions import ConfigError
from diffscope.utils import create_cli_logger

from ._commands import ExitCode, exit_with_error, register_commands
from ._context import CLIContext

HELP = "Pick the staged or working-tree diff for the repository you are working in."


def _cli_overrides(*, verbose: bool) -> dict[str, object] | None:
    if not verbose:
        return None
    return {"logging": {"level": "debug"}}


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the CLI application.

    Args:
        console: Console for cyclopts help and usage output.
        error_console: Console for cyclopts parse errors.
        exit_on_error: Exit on parse errors instead of raising.

    Returns:
        The cyclopts app with every command registered.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="diffscope",
        help=HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        workspace: Annotated[
            tuple[Path, ...],
            Parameter(
                name=["--workspace", "-w"],
                help="Workspace root to scan (repeatable; defaults to the current directory)",
            ),
        ] = (),
        verbose: Annotated[bool, Parameter(help="Enable debug logging")] = False,
        quiet: Annotated[bool, Parameter(help="Suppress non-essential output")] = False,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Launch diffscope with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            workspace: Workspace roots to scan.
            verbose: Enable debug logging.
            quiet: Suppress non-essential output.
            config: Explicit path to config file.
        """
        roots = tuple(root.absolute() for root in workspace)
        project_root = roots[0] if roots else Path.cwd()

        try:
            loaded_config, config_error = safe_load_config(
                config_path=config,
                project_root=project_root,
                cli_overrides=_cli_overrides(verbose=verbose),
            )
        except (ConfigError, OSError) as e:
            exit_with_error(str(e), ExitCode.LOAD_ERROR)

        cli_logger = create_cli_logger(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,  # type: ignore[arg-type]
            log_file=loaded_config.logging.file,
            command=tokens[0] if tokens else "",
        )

        ctx = CLIContext(
            config=loaded_config,
            verbose=verbose,
            quiet=quiet,
            workspace=roots,
            config_error=config_error,
            logger=cli_logger,
        )
        CLIContext.set_current(ctx)

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `diffscope` CLI."""
    app.meta()


if __name__ == "__main__":
    main()
