# pyright: reportUnusedCallResult=false
# ruff: noqa: D415, FBT002, TC003
"""Staged content detection command."""

from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import Parameter

from diffscope.cli._context import CLIContext, OutputFormat
from diffscope.exceptions import DetectionError
from diffscope.staged import StagedDetails, StagedDetectionResult

from ._shared import ExitCode, create_session, exit_with_error, format_json, get_console


def _detection_data(
    result: StagedDetectionResult,
    details: StagedDetails | None,
) -> dict[str, object]:
    data: dict[str, object] = {
        "repository": str(result.repository_path),
        "has_staged_content": result.has_staged_content,
        "staged_file_count": result.staged_file_count,
        "staged_files": [str(path) for path in result.staged_files],
        "recommended_target": str(result.recommended_target),
        "error": result.error_message,
    }
    if details is not None:
        data["additions"] = details.summary.additions
        data["deletions"] = details.summary.deletions
    return data


def staged(
    path: Annotated[
        Path | None,
        Parameter(help="A path inside the repository (defaults to the current directory)"),
    ] = None,
    *,
    details: Annotated[
        bool,
        Parameter(name=["--details", "-d"], help="Include added and deleted line counts"),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        Parameter(name=["--format", "-f"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """Show staged changes and the recommended diff target"""
    ctx = CLIContext.get_current()
    session = create_session(ctx)
    target_path = path or Path.cwd()

    async def detect() -> tuple[StagedDetectionResult, StagedDetails | None]:
        async with session:
            repository = await session.registry.get_repository_for_path(target_path)
            if repository is None:
                exit_with_error(f"No repository contains {target_path}", ExitCode.NOT_FOUND)
            result = await session.detector.detect_staged_content(repository.path)
            if not details or result.failed:
                return result, None
            return result, await session.detector.get_staged_details(repository.path)

    try:
        result, staged_details = anyio.run(detect)
    except DetectionError as e:
        exit_with_error(e.message, ExitCode.NOT_FOUND)

    if output_format is OutputFormat.JSON:
        print(format_json(_detection_data(result, staged_details)))  # noqa: T201
        return

    console = get_console()
    if result.failed:
        console.print(f"[yellow]Detection failed:[/yellow] {result.error_message}")
    elif not result.has_staged_content:
        console.print("[dim]No staged changes[/dim]")
    else:
        console.print(f"[bold green]Staged files ({result.staged_file_count}):[/bold green]")
        for file in result.staged_files:
            console.print(f"  [green]+ {file.relative_to(result.repository_path)}[/green]")

    if staged_details is not None:
        summary = staged_details.summary
        console.print(
            f"[green]+{summary.additions}[/green] [red]-{summary.deletions}[/red] "
            f"in {summary.files} file(s)"
        )
    console.print(f"Recommended target: [bold]{result.recommended_target}[/bold]")
