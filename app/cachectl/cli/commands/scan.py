"""Scan command implementation.

Discovers projects below the configured scan directories and reports
their dependencies and cache sizes.
"""

import asyncio
import contextlib
import signal
from pathlib import Path
from typing import Annotated

import typer
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from cachectl.cli.display import print_projects_table, print_report_summary, report_to_json
from cachectl.cli.types import (
    EcosystemChoice,
    OutputFormat,
    create_locator,
    get_ecosystems,
    require_settings,
)
from cachectl.core.paths import ensure_state_dir, get_last_scan_path
from cachectl.core.session import ScanSession
from cachectl.core.settings import ScanDirectorySet
from cachectl.core.tools import ToolLocator
from cachectl.models.project import Ecosystem
from cachectl.models.scan import ScanFinished, ScanProgress, ScanReport
from cachectl.utils.formatting import console, print_error, print_info, print_warning

app = typer.Typer(
    help="Discover projects and measure their caches.",
    invoke_without_command=True,
)


async def run_scan(session: ScanSession, show_progress: bool = True) -> ScanReport:
    """Drive a scan session, rendering progress and handling Ctrl-C.

    SIGINT cancels the session instead of aborting the process, so the
    projects completed so far are still reported.

    Args:
        session: The scan session to run.
        show_progress: Whether to render a progress bar.

    Returns:
        The final scan report.
    """
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, session.cancel)

    report = ScanReport()
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
        transient=True,
        disable=not show_progress,
    )
    try:
        with progress:
            task_id = progress.add_task("Scanning", total=1.0)
            async for event in session.events():
                if isinstance(event, ScanProgress):
                    progress.update(task_id, completed=event.fraction, description=event.message)
                elif isinstance(event, ScanFinished):
                    report = event.report
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)

    return report


def _save_last_scan(report: ScanReport) -> None:
    """Keep a copy of the latest report in the state directory."""
    try:
        ensure_state_dir()
        get_last_scan_path().write_text(report_to_json(report))
    except (OSError, RuntimeError) as e:
        print_warning(f"Could not save scan results: {e}")


def _export(report: ScanReport, export_path: Path) -> None:
    """Write the full report to a JSON file."""
    export_path = export_path.resolve()
    if export_path.is_dir():
        print_error(f"Export path is a directory: {export_path}")
        raise typer.Exit(code=1)

    try:
        export_path.parent.mkdir(parents=True, exist_ok=True)
        export_path.write_text(report_to_json(report))
        print_info(f"Scan results exported to {export_path}")
    except OSError as e:
        print_error(f"Failed to export: {e}")
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def scan_projects(
    ctx: typer.Context,
    ecosystem: Annotated[
        EcosystemChoice,
        typer.Option(
            "--ecosystem",
            "-e",
            help="Ecosystem to scan: go, node, python, rust, or all.",
            case_sensitive=False,
        ),
    ] = EcosystemChoice.ALL,
    roots: Annotated[
        list[Path] | None,
        typer.Option(
            "--root",
            "-r",
            help="Directory to scan instead of the configured ones (repeatable).",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    export_path: Annotated[
        Path | None,
        typer.Option(
            "--export",
            help="Export scan results to JSON file.",
        ),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            help="Limit number of projects to display.",
        ),
    ] = None,
    no_deps: Annotated[
        bool,
        typer.Option(
            "--no-deps",
            help="Skip dependency inspection (sizes only).",
        ),
    ] = False,
) -> None:
    """Scan for projects and show their cache usage.

    Projects are shown largest cache first. Press Ctrl-C to stop early;
    projects finished so far are still reported.

    Examples:
        cachectl scan                          # Scan configured directories
        cachectl scan --ecosystem node         # Node.js projects only
        cachectl scan --root ~/src --no-deps   # Quick size-only scan
        cachectl scan --format json            # Output as JSON
        cachectl scan --export scan.json       # Export to JSON file
    """
    if ctx.invoked_subcommand is not None:
        return

    settings = require_settings()
    scan_roots = ScanDirectorySet([str(r) for r in roots] if roots else settings.scan_roots)
    if not len(scan_roots):
        print_error("No scan directories configured. Add one with: cachectl dirs add PATH")
        raise typer.Exit(code=1)

    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    ecosystems: list[Ecosystem] = get_ecosystems(ecosystem)
    locator: ToolLocator = create_locator(settings)
    session = ScanSession(
        scan_roots,
        locator,
        ecosystems,
        inspect_dependencies=not no_deps,
    )

    show_progress = output_format == OutputFormat.TABLE and not quiet
    report = asyncio.run(run_scan(session, show_progress=show_progress))
    _save_last_scan(report)

    if export_path is not None:
        _export(report, export_path)

    projects = sorted(report.projects, key=lambda p: p.cache_size, reverse=True)
    display_projects = projects[:limit] if limit else projects

    if output_format == OutputFormat.JSON:
        shown = ScanReport(
            projects=tuple(display_projects),
            failures=report.failures,
            cancelled=report.cancelled,
        )
        console.print_json(report_to_json(shown))
        return

    if not projects:
        print_info("No projects found.")
    else:
        print_projects_table(display_projects)
    print_report_summary(report, len(display_projects))
