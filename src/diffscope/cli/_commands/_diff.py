# pyright: reportUnusedCallResult=false
# ruff: noqa: D415, FBT002, TC003
"""Diff resolution command."""

import sys
from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import Parameter

from diffscope.batch import BatchReport
from diffscope.cli._context import CLIContext, OutputFormat
from diffscope.enums import DiffTarget
from diffscope.exceptions import DetectionError, DiffRetrievalError
from diffscope.session import DiffResolution

from ._shared import ExitCode, create_session, exit_with_error, format_json, get_console


def resolution_data(resolution: DiffResolution) -> dict[str, object]:
    data: dict[str, object] = {
        "repository": str(resolution.context.repository.path),
        "scm": resolution.scm_type,
        "target": str(resolution.target) if resolution.target is not None else None,
        "staged_file_count": resolution.detection.staged_file_count,
        "files": [],
        "diff": None,
    }
    if resolution.diff is not None:
        data["files"] = list(resolution.diff.files)
        data["diff"] = resolution.diff.content
    return data


def _print_resolution(resolution: DiffResolution, *, stat: bool) -> None:
    console = get_console()
    repository = resolution.context.repository
    if resolution.diff is None:
        console.print(f"[yellow]No source control provider for {repository.path}[/yellow]")
        return
    if resolution.diff.is_empty:
        console.print(f"[dim]No changes in {repository.name} ({resolution.target})[/dim]")
        return
    if stat:
        console.print(f"[bold]{repository.name}[/bold] ({resolution.target})")
        for file in resolution.diff.files:
            console.print(f"  {file}")
        return
    # Diff text may contain rich markup characters
    sys.stdout.write(resolution.diff.content)
    if not resolution.diff.content.endswith("\n"):
        sys.stdout.write("\n")


def _print_batch(report: BatchReport[DiffResolution], *, stat: bool) -> None:
    console = get_console()
    for result in report.results:
        if result.value is not None:
            _print_resolution(result.value, stat=stat)
        else:
            console.print(f"[red]{result.repository.name}:[/red] {result.error}")


def diff(
    files: Annotated[
        tuple[Path, ...],
        Parameter(help="Limit the diff to these files (defaults to the current directory)"),
    ] = (),
    *,
    target: Annotated[
        DiffTarget | None,
        Parameter(name=["--target", "-t"], help="Diff scope: staged, all or auto"),
    ] = None,
    stat: Annotated[
        bool,
        Parameter(name=["--stat", "-s"], help="List changed files instead of the diff"),
    ] = False,
    batch: Annotated[
        bool,
        Parameter(name=["--batch", "-b"], help="Resolve one diff per repository owning FILES"),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """Select the diff scope and print the diff"""
    ctx = CLIContext.get_current()
    session = create_session(ctx)
    selected = [path.absolute() for path in files]

    if batch:
        if not selected:
            exit_with_error("--batch requires at least one file", ExitCode.LOAD_ERROR)

        async def resolve_batch() -> BatchReport[DiffResolution]:
            async with session:
                return await session.resolve_batch(selected, user_preference=target)

        report = anyio.run(resolve_batch)
        if output_format is OutputFormat.JSON:
            items = [
                resolution_data(result.value)
                if result.value is not None
                else {"repository": str(result.repository.path), "error": result.error}
                for result in report.results
            ]
            print(format_json(items))  # noqa: T201
        else:
            _print_batch(report, stat=stat)
        if report.failed:
            raise SystemExit(ExitCode.RETRIEVAL_ERROR)
        return

    async def resolve() -> DiffResolution:
        async with session:
            return await session.resolve_diff(
                selected or None,
                active_file=None if selected else Path.cwd(),
                user_preference=target,
            )

    try:
        resolution = anyio.run(resolve)
    except DetectionError as e:
        exit_with_error(e.message, ExitCode.NOT_FOUND)
    except DiffRetrievalError as e:
        exit_with_error(str(e), ExitCode.RETRIEVAL_ERROR)

    if output_format is OutputFormat.JSON:
        print(format_json(resolution_data(resolution)))  # noqa: T201
        return
    _print_resolution(resolution, stat=stat)
