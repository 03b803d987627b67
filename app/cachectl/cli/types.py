"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum

import typer

from cachectl.core.settings import Settings, SettingsError, load_settings
from cachectl.core.tools import ToolLocator
from cachectl.models.project import Ecosystem
from cachectl.utils.formatting import print_error


class EcosystemChoice(str, Enum):
    """Ecosystem selection for CLI commands."""

    GO = "go"
    NODE = "node"
    PYTHON = "python"
    RUST = "rust"
    ALL = "all"


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def get_ecosystems(choice: EcosystemChoice = EcosystemChoice.ALL) -> list[Ecosystem]:
    """Resolve an ecosystem choice to the ecosystems it covers.

    Args:
        choice: The ecosystem choice (go, node, python, rust, or all).

    Returns:
        List of ecosystems.
    """
    if choice == EcosystemChoice.ALL:
        return list(Ecosystem)
    return [Ecosystem(choice.value)]


def require_settings() -> Settings:
    """Load settings, exiting with an error message if they are invalid.

    Raises:
        typer.Exit: If the settings file cannot be parsed or validated.
    """
    try:
        return load_settings()
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def create_locator(settings: Settings) -> ToolLocator:
    """Create a tool locator from the user's tool overrides."""
    return ToolLocator(settings.tool_settings())
