"""CLI commands for cachectl.

This package contains all subcommand implementations.
"""

from cachectl.cli.commands import caches, clean, dirs, scan, tools

__all__ = ["caches", "clean", "dirs", "scan", "tools"]
