"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from cachectl.core.theme import get_theme

if TYPE_CHECKING:
    from cachectl.models.project import Project

# Thresholds for size coloring
_LARGE_BYTES = 1024**3
_MEDIUM_BYTES = 100 * 1024**2


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_size(size_bytes: int | None) -> str:
    """Format byte count as human-readable string.

    Args:
        size_bytes: Number of bytes, or None when unknown.

    Returns:
        Size such as "512 B", "1.5 MB" or "unknown".
    """
    if size_bytes is None:
        return "unknown"
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(size) < 1024:
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{size:.1f} TB"


def size_style(size_bytes: int) -> str:
    """Pick the theme style for a cache size."""
    if size_bytes >= _LARGE_BYTES:
        return "size_large"
    if size_bytes >= _MEDIUM_BYTES:
        return "size_medium"
    return "size_small"


def create_project_table(title: str = "Projects") -> Table:
    """Create a pre-configured table for displaying projects.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for project display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],  # Zebra striping for readability
    )
    table.add_column("Project", no_wrap=True, style="project.name")
    table.add_column("Ecosystem", style="ecosystem")
    table.add_column("Deps", justify="right", style="muted")
    table.add_column("Cache", justify="right")
    table.add_column("Modified", style="muted")
    table.add_column("Path", style="project.path", overflow="ellipsis")
    return table


def format_project_row(project: Project) -> tuple[str, str, str, str, str, str]:
    """Format a project as a table row with proper styling.

    Args:
        project: The discovered project to format.

    Returns:
        Tuple of (name, ecosystem, deps, cache size, modified, path).
    """
    style = size_style(project.cache_size)
    orphaned = sum(1 for dep in project.dependencies if dep.orphaned)
    deps = str(len(project.dependencies))
    if orphaned:
        deps += f" [orphaned]({orphaned} orphaned)[/]"

    return (
        project.name,
        project.ecosystem.display_name,
        deps,
        f"[{style}]{format_size(project.cache_size)}[/]",
        project.last_modified.strftime("%Y-%m-%d"),
        project.path,
    )


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
