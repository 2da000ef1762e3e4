# pyright: reportUnusedCallResult=false
# ruff: noqa: D415, FBT002, TC003
"""Provider resolution command."""

from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import Parameter

from diffscope.cli._context import CLIContext, OutputFormat
from diffscope.scm import RecentCommitMessages, ScmProvider

from ._shared import ExitCode, create_session, exit_with_error, format_json, get_console


def provider_data(
    provider: ScmProvider,
    history: RecentCommitMessages | None,
) -> dict[str, object]:
    data: dict[str, object] = {
        "type": str(provider.type),
        "root": str(provider.root),
        "origin": str(provider.capabilities.origin),
        "supports_staging": provider.capabilities.supports_staging,
    }
    if history is not None:
        data["recent"] = list(history.repository)
        data["recent_by_user"] = list(history.user)
    return data


def scm(
    path: Annotated[
        Path | None,
        Parameter(help="A path inside the repository (defaults to the current directory)"),
    ] = None,
    *,
    history: Annotated[
        bool,
        Parameter(name=["--history", "-H"], help="Show recent commit subjects"),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """Show the source control provider for a path"""
    ctx = CLIContext.get_current()
    session = create_session(ctx)
    target_path = (path or Path.cwd()).absolute()

    async def resolve() -> tuple[ScmProvider | None, RecentCommitMessages | None]:
        async with session:
            provider = await session.resolver.detect_scm([target_path])
            if provider is None or not history:
                return provider, None
            return provider, await provider.get_recent_commit_messages()

    provider, recent = anyio.run(resolve)
    if provider is None:
        exit_with_error(f"No source control provider for {target_path}", ExitCode.NOT_FOUND)

    if output_format is OutputFormat.JSON:
        print(format_json(provider_data(provider, recent)))  # noqa: T201
        return

    console = get_console()
    console.print(f"[bold]{provider.type}[/bold] {provider.root}")
    staging = "yes" if provider.capabilities.supports_staging else "no"
    console.print(f"[dim]origin: {provider.capabilities.origin}, staging: {staging}[/dim]")
    if recent is None:
        return
    for heading, subjects in (("Recent commits", recent.repository), ("Your commits", recent.user)):
        if not subjects:
            continue
        console.print(f"\n[bold]{heading}:[/bold]")
        for subject in subjects:
            console.print(f"  {subject}", markup=False)
