"""Shared Rich display functions for scan reports and cleanup outcomes.

Provides reusable table builders and summary printers used across CLI
commands (scan, clean, caches).
"""

import json
from typing import Any

from rich.table import Table

from cachectl.models.cleanup import CleanupOutcome, Failed, Skipped, Succeeded
from cachectl.models.project import CacheEntry, Project
from cachectl.models.scan import ScanReport
from cachectl.utils.formatting import (
    console,
    create_project_table,
    format_project_row,
    format_size,
    print_error,
    print_success,
    print_warning,
    size_style,
)


def project_to_dict(project: Project) -> dict[str, Any]:
    """Convert a project to a JSON-serializable dict."""
    return {
        "id": project.id,
        "name": project.name,
        "path": project.path,
        "ecosystem": project.ecosystem.value,
        "last_modified": project.last_modified.isoformat(),
        "cache_size": project.cache_size,
        "dependencies": [
            {
                "name": dep.name,
                "version": dep.version,
                "size_bytes": dep.size_bytes,
                "cache_path": dep.cache_path,
                "orphaned": dep.orphaned,
            }
            for dep in project.dependencies
        ],
    }


def report_to_dict(report: ScanReport) -> dict[str, Any]:
    """Convert a scan report to a JSON-serializable dict."""
    return {
        "projects": [project_to_dict(p) for p in report.projects],
        "failures": [
            {"root": f.root, "ecosystem": f.ecosystem.value, "message": f.message}
            for f in report.failures
        ],
        "cancelled": report.cancelled,
        "total_cache_size": report.total_cache_size,
    }


def report_to_json(report: ScanReport) -> str:
    """Serialize a scan report as indented JSON."""
    return json.dumps(report_to_dict(report), indent=2)


def print_projects_table(projects: list[Project], title: str = "Projects") -> None:
    """Display projects as a Rich table."""
    table = create_project_table(title)
    for project in projects:
        table.add_row(*format_project_row(project))
    console.print(table)


def create_caches_table(entries: list[CacheEntry]) -> Table:
    """Create a Rich table displaying global cache entries.

    Args:
        entries: Cache entries to display.

    Returns:
        Rich Table configured for cache display.
    """
    table = Table(
        title="Global Caches",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Ecosystem", style="ecosystem")
    table.add_column("Size", justify="right")
    table.add_column("Last Used", style="muted")
    table.add_column("Status", justify="center")
    table.add_column("Path", style="project.path", overflow="ellipsis")

    for entry in entries:
        style = size_style(entry.size_bytes)
        status = "[orphaned]orphaned[/]" if entry.orphaned else "[success]in use[/]"
        table.add_row(
            entry.ecosystem.display_name,
            f"[{style}]{format_size(entry.size_bytes)}[/]",
            entry.last_accessed.strftime("%Y-%m-%d"),
            status,
            entry.path,
        )

    return table


def cache_entry_to_dict(entry: CacheEntry) -> dict[str, Any]:
    """Convert a cache entry to a JSON-serializable dict."""
    return {
        "path": entry.path,
        "ecosystem": entry.ecosystem.value,
        "size_bytes": entry.size_bytes,
        "last_accessed": entry.last_accessed.isoformat(),
        "orphaned": entry.orphaned,
    }


def print_outcome(outcome: CleanupOutcome) -> None:
    """Print a cleanup outcome with the matching style.

    Succeeded outcomes go to stdout; Skipped outcomes are printed as
    warnings and Failed outcomes as errors, both on stderr.
    """
    if isinstance(outcome, Succeeded):
        print_success(outcome.message)
    elif isinstance(outcome, Skipped):
        print_warning(outcome.reason)
    elif isinstance(outcome, Failed):
        print_error(outcome.message)


def print_report_summary(report: ScanReport, shown: int) -> None:
    """Print totals below a projects table.

    Args:
        report: The scan report.
        shown: Number of projects actually displayed.
    """
    total = len(report.projects)
    size = format_size(report.total_cache_size)
    console.print(f"\n[dim]Found {total} project(s) with {size} of caches[/dim]")
    if shown < total:
        console.print(f"[dim](showing {shown} of {total})[/dim]")
    reported: set[str] = set()
    for failure in report.failures:
        if failure.root in reported:
            continue
        reported.add(failure.root)
        print_warning(f"Could not scan {failure.root}: {failure.message}")
    if report.cancelled:
        print_warning("Scan was cancelled; results are incomplete.")
