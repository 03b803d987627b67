"""Global cache accounting command."""

import asyncio
import json
from typing import Annotated

import typer

from cachectl.cli.commands.scan import run_scan
from cachectl.cli.display import cache_entry_to_dict, create_caches_table
from cachectl.cli.types import (
    EcosystemChoice,
    OutputFormat,
    create_locator,
    get_ecosystems,
    require_settings,
)
from cachectl.core.caches import collect_cache_entries
from cachectl.core.session import ScanSession
from cachectl.core.settings import ScanDirectorySet
from cachectl.models.project import CacheEntry
from cachectl.utils.formatting import console, format_size, print_info

app = typer.Typer(
    help="Show global toolchain caches.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def show_caches(
    ctx: typer.Context,
    ecosystem: Annotated[
        EcosystemChoice,
        typer.Option(
            "--ecosystem",
            "-e",
            help="Ecosystem to show: go, node, python, rust, or all.",
            case_sensitive=False,
        ),
    ] = EcosystemChoice.ALL,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Measure global caches and flag those no scanned project uses.

    The configured scan directories are searched (without dependency
    inspection) to decide which caches are orphaned.
    """
    if ctx.invoked_subcommand is not None:
        return

    settings = require_settings()
    locator = create_locator(settings)
    ecosystems = get_ecosystems(ecosystem)
    session = ScanSession(
        ScanDirectorySet(settings.scan_roots),
        locator,
        ecosystems,
        inspect_dependencies=False,
    )

    async def collect() -> list[CacheEntry]:
        report = await run_scan(session, show_progress=False)
        return await collect_cache_entries(report.projects, locator, ecosystems)

    entries = asyncio.run(collect())

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps([cache_entry_to_dict(e) for e in entries]))
        return

    if not entries:
        print_info("No global caches found.")
        return

    console.print(create_caches_table(entries))
    orphaned = sum(e.size_bytes for e in entries if e.orphaned)
    total = sum(e.size_bytes for e in entries)
    console.print(
        f"\n[dim]{format_size(total)} in global caches, {format_size(orphaned)} orphaned[/dim]"
    )
