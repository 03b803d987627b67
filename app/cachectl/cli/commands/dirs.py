"""Scan directory management commands."""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from cachectl.cli.types import require_settings
from cachectl.core.discovery import ProjectDiscoverer
from cachectl.core.settings import ScanDirectorySet, SettingsError, save_settings
from cachectl.models.scan import DirectoryValidation, ValidationStatus
from cachectl.utils.formatting import console, print_error, print_info, print_success, print_warning

app = typer.Typer(
    help="Manage the directories scanned for projects.",
    no_args_is_help=True,
)

_STATUS_LABELS: dict[ValidationStatus, str] = {
    ValidationStatus.VALID: "[success]valid[/]",
    ValidationStatus.WARNING: "[warning]warning[/]",
    ValidationStatus.INVALID: "[error]invalid[/]",
}


def _print_validation(result: DirectoryValidation) -> None:
    if result.status == ValidationStatus.VALID:
        print_success(result.message)
    elif result.status == ValidationStatus.WARNING:
        print_warning(result.message)
    else:
        print_error(result.message)


@app.command("list")
def list_dirs() -> None:
    """Show the configured scan directories."""
    settings = require_settings()
    if not settings.scan_roots:
        print_info("No scan directories configured. Add one with: cachectl dirs add PATH")
        return

    table = Table(
        title="Scan Directories",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Path", style="project.path")
    table.add_column("Status", justify="center")

    discoverer = ProjectDiscoverer()
    for root in settings.scan_roots:
        result = discoverer.validate(root)
        table.add_row(root, _STATUS_LABELS[result.status])

    console.print(table)


@app.command("add")
def add_dir(
    path: Annotated[Path, typer.Argument(help="Directory to scan for projects.")],
) -> None:
    """Add a scan directory after validating it."""
    settings = require_settings()
    result = ProjectDiscoverer().validate(path)
    _print_validation(result)
    if not result.is_usable:
        raise typer.Exit(code=1)

    roots = ScanDirectorySet(settings.scan_roots)
    if not roots.add(path):
        print_info(f"Already configured: {path.expanduser().resolve()}")
        return

    settings.scan_roots = roots.to_list()
    try:
        save_settings(settings)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Added {path.expanduser().resolve()}")


@app.command("remove")
def remove_dir(
    path: Annotated[Path, typer.Argument(help="Scan directory to remove.")],
) -> None:
    """Remove a scan directory."""
    settings = require_settings()
    roots = ScanDirectorySet(settings.scan_roots)
    if not roots.remove(path):
        print_error(f"Not a configured scan directory: {path}")
        raise typer.Exit(code=1)

    settings.scan_roots = roots.to_list()
    try:
        save_settings(settings)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Removed {path.expanduser().resolve()}")


@app.command("validate")
def validate_dir(
    path: Annotated[
        Path | None,
        typer.Argument(help="Directory to check. Defaults to all configured ones."),
    ] = None,
) -> None:
    """Check whether directories are usable scan roots."""
    if path is not None:
        targets = [str(path)]
    else:
        targets = require_settings().scan_roots
        if not targets:
            print_info("No scan directories configured.")
            return

    discoverer = ProjectDiscoverer()
    invalid = False
    for target in targets:
        result = discoverer.validate(target)
        _print_validation(result)
        invalid = invalid or not result.is_usable

    if invalid:
        raise typer.Exit(code=1)
