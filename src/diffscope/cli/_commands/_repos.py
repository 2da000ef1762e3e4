# pyright: reportUnusedCallResult=false
# ruff: noqa: D415, FBT002
"""Repository discovery command."""

from typing import Annotated

import anyio
from cyclopts import Parameter
from rich.table import Table

from diffscope.cli._context import CLIContext, OutputFormat
from diffscope.repository import RepositoryInfo

from ._shared import create_session, format_json, get_console


def repository_data(repository: RepositoryInfo) -> dict[str, object]:
    return {
        "name": repository.name,
        "type": str(repository.type),
        "branch": repository.branch,
        "path": str(repository.path),
        "active": repository.is_active,
    }


def repos(
    *,
    refresh: Annotated[
        bool,
        Parameter(name=["--refresh", "-r"], help="Ignore cached discovery results"),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """List repositories in the workspace"""
    ctx = CLIContext.get_current()
    session = create_session(ctx)

    async def discover() -> tuple[RepositoryInfo, ...]:
        async with session:
            if refresh:
                return await session.registry.refresh_repositories()
            return await session.registry.get_all_repositories()

    repositories = anyio.run(discover)

    if output_format is OutputFormat.JSON:
        print(format_json([repository_data(repo) for repo in repositories]))  # noqa: T201
        return

    console = get_console()
    if not repositories:
        console.print("[dim]No repositories found[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Branch")
    table.add_column("Path", overflow="fold")
    for repo in repositories:
        table.add_row(repo.name, str(repo.type), repo.branch or "-", str(repo.path))
    console.print(table)

    if not ctx.quiet:
        noun = "repository" if len(repositories) == 1 else "repositories"
        console.print(f"\n[dim]{len(repositories)} {noun} found[/dim]")
