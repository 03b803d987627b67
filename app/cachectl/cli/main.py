"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from cachectl import __version__
from cachectl.cli.commands import caches, clean, dirs, scan, tools
from cachectl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="cachectl",
    help="Find development projects and reclaim their cache space.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"cachectl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Route log records to stderr through Rich.

    Args:
        verbose: Show debug records.
        quiet: Show errors only.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose, rich_tracebacks=True)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """cachectl - Reclaim disk space from development caches.

    Discover Go, Node.js, Python and Rust projects, see how much space
    their dependency and build caches take, and clean them up.
    """
    configure_logging(verbose, quiet)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(scan.app, name="scan")
app.add_typer(clean.app, name="clean")
app.add_typer(dirs.app, name="dirs")
app.add_typer(tools.app, name="tools")
app.add_typer(caches.app, name="caches")
