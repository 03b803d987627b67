"""Toolchain diagnostics and path override commands."""

import asyncio
import os
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from cachectl.cli.types import create_locator, require_settings
from cachectl.core.settings import SUPPORTED_TOOLS, SettingsError, save_settings
from cachectl.core.tools import TOOL_INFO, ToolStatus, is_executable
from cachectl.utils.formatting import console, print_error, print_success, print_warning

app = typer.Typer(
    help="Inspect and configure toolchain executables.",
    no_args_is_help=True,
)


def _check_tool(tool: str) -> None:
    if tool not in SUPPORTED_TOOLS:
        print_error(f"Unknown tool: {tool}. Supported: {', '.join(SUPPORTED_TOOLS)}")
        raise typer.Exit(code=1)


def create_tools_table(statuses: list[ToolStatus]) -> Table:
    """Create a Rich table displaying toolchain diagnostics."""
    table = Table(
        title="Toolchains",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Tool", style="project.name")
    table.add_column("Status", justify="center")
    table.add_column("Version", style="muted")
    table.add_column("Mode", style="muted")
    table.add_column("Path", style="project.path")

    for status in statuses:
        info = TOOL_INFO.get(status.name)
        label = info.display_name if info else status.name
        table.add_row(
            label,
            "[success]found[/]" if status.available else "[error]missing[/]",
            status.version or "-",
            "auto" if status.auto_detect else "manual",
            status.path or "-",
        )
    return table


@app.command("list")
def list_tools() -> None:
    """Show where each toolchain was found and its version."""
    settings = require_settings()
    locator = create_locator(settings)
    statuses = asyncio.run(locator.diagnose())
    console.print(create_tools_table(statuses))

    missing = [s.name for s in statuses if not s.available]
    if missing:
        print_warning(
            f"Not found: {', '.join(missing)}. Set a path with: cachectl tools set TOOL PATH"
        )


@app.command("set")
def set_tool(
    tool: Annotated[str, typer.Argument(help="Tool name: go, npm, pip, or cargo.")],
    path: Annotated[Path, typer.Argument(help="Absolute path to the executable.")],
) -> None:
    """Pin a toolchain to an explicit executable and disable auto-detection."""
    _check_tool(tool)
    executable = Path(os.path.expanduser(path)).resolve()
    if not is_executable(executable):
        print_error(f"Not an executable file: {executable}")
        raise typer.Exit(code=1)

    settings = require_settings()
    tool_settings = settings.tool_settings()
    tool_settings.set_path(tool, str(executable))
    settings.tools = tool_settings.tools
    try:
        save_settings(settings)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"{tool} -> {executable}")


@app.command("auto")
def auto_tool(
    tool: Annotated[str, typer.Argument(help="Tool name: go, npm, pip, or cargo.")],
) -> None:
    """Return a toolchain to automatic detection."""
    _check_tool(tool)
    settings = require_settings()
    tool_settings = settings.tool_settings()
    tool_settings.enable_auto_detect(tool)
    settings.tools = tool_settings.tools
    try:
        save_settings(settings)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"{tool} will be located automatically")
