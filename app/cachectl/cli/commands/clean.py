"""Clean commands.

Delete project caches, purge global toolchain caches, prune unused
dependencies, or remove an arbitrary directory.
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from cachectl.cleanup import CacheCleaner
from cachectl.cli.display import print_outcome
from cachectl.cli.types import EcosystemChoice, create_locator, require_settings
from cachectl.core.discovery import project_from_directory
from cachectl.core.session import project_cache_size
from cachectl.core.sizing import TreeSizeCalculator
from cachectl.ecosystems import get_strategy
from cachectl.models.cleanup import (
    CleanupOutcome,
    CleanupRequest,
    DependencyPrune,
    DirectoryDeletion,
    Failed,
    GlobalCacheCleanup,
    ProjectCacheCleanup,
)
from cachectl.models.project import Ecosystem, Project
from cachectl.utils.formatting import format_size, print_error, print_info

app = typer.Typer(
    help="Clean project and global caches.",
    no_args_is_help=True,
)


def _perform(request: CleanupRequest, dry_run: bool = False) -> CleanupOutcome:
    """Run one cleanup request with a fresh cleaner and print its outcome.

    Raises:
        typer.Exit: With code 1 if the outcome is Failed.
    """
    settings = require_settings()
    cleaner = CacheCleaner(create_locator(settings), dry_run=dry_run)
    outcome = asyncio.run(cleaner.perform(request))
    print_outcome(outcome)
    if isinstance(outcome, Failed):
        raise typer.Exit(code=1)
    return outcome


def _confirm(message: str, yes: bool) -> None:
    """Ask for confirmation unless --yes was given.

    Raises:
        typer.Exit: With code 0 if the user declines.
    """
    if yes:
        return
    if not typer.confirm(message, default=False):
        print_info("Aborted.")
        raise typer.Exit(code=0)


def _load_project(path: Path, ecosystem: EcosystemChoice | None) -> Project:
    """Build a Project for a directory, exiting on error."""
    selected = None
    if ecosystem is not None and ecosystem != EcosystemChoice.ALL:
        selected = Ecosystem(ecosystem.value)
    try:
        return project_from_directory(path, selected)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


@app.command("project")
def clean_project(
    path: Annotated[Path, typer.Argument(help="Project directory.")],
    ecosystem: Annotated[
        EcosystemChoice | None,
        typer.Option(
            "--ecosystem",
            "-e",
            help="Ecosystem, if the directory has several markers.",
            case_sensitive=False,
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be deleted."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete a project's cache and build directories.

    Examples:
        cachectl clean project ~/src/webapp          # node_modules
        cachectl clean project ~/src/tool --dry-run  # show what would go
    """
    project = _load_project(path, ecosystem)
    strategy = get_strategy(project.ecosystem)

    if not dry_run:
        size = project_cache_size(project, TreeSizeCalculator())
        names = ", ".join([*strategy.cache_dirs, *strategy.recursive_cache_names])
        _confirm(
            f"Delete {project.ecosystem.display_name} caches ({names}) in {project.path} "
            f"[{format_size(size)}]?",
            yes,
        )

    _perform(ProjectCacheCleanup(project), dry_run=dry_run)


@app.command("global")
def clean_global(
    ecosystem: Annotated[
        EcosystemChoice,
        typer.Argument(help="Ecosystem whose global cache to purge.", case_sensitive=False),
    ],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Purge a toolchain's global cache (e.g. `go clean -modcache`)."""
    if ecosystem == EcosystemChoice.ALL:
        targets = list(Ecosystem)
    else:
        targets = [Ecosystem(ecosystem.value)]

    names = ", ".join(e.display_name for e in targets)
    _confirm(f"Purge the global cache of {names}?", yes)

    settings = require_settings()
    cleaner = CacheCleaner(create_locator(settings))

    async def purge_all() -> list[CleanupOutcome]:
        return [await cleaner.perform(GlobalCacheCleanup(t)) for t in targets]

    outcomes = asyncio.run(purge_all())
    for outcome in outcomes:
        print_outcome(outcome)

    if any(isinstance(o, Failed) for o in outcomes):
        raise typer.Exit(code=1)


@app.command("prune")
def clean_prune(
    path: Annotated[Path, typer.Argument(help="Project directory.")],
    ecosystem: Annotated[
        EcosystemChoice | None,
        typer.Option(
            "--ecosystem",
            "-e",
            help="Ecosystem, if the directory has several markers.",
            case_sensitive=False,
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove unused dependencies with the toolchain (`go mod tidy`, `npm prune`)."""
    project = _load_project(path, ecosystem)
    _confirm(f"Prune unused dependencies of {project.path}?", yes)
    _perform(DependencyPrune(project))


@app.command("dir")
def clean_dir(
    path: Annotated[Path, typer.Argument(help="Directory to delete.")],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be deleted."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete an arbitrary directory (system locations are refused)."""
    target = path.expanduser()
    if not dry_run:
        _confirm(f"Permanently delete {target}?", yes)
    _perform(DirectoryDeletion(str(target)), dry_run=dry_run)
