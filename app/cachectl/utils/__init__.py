"""Utility modules for cachectl.

This module exports commonly used utility functions.
"""

from cachectl.utils.formatting import (
    console,
    create_project_table,
    err_console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from cachectl.utils.shell import (
    CommandError,
    CommandFailedError,
    CommandPermissionError,
    CommandResult,
    CommandTimeoutError,
    ProcessRunner,
    ToolNotFoundError,
)

__all__ = [
    "CommandError",
    "CommandFailedError",
    "CommandPermissionError",
    "CommandResult",
    "CommandTimeoutError",
    "ProcessRunner",
    "ToolNotFoundError",
    "console",
    "create_project_table",
    "err_console",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
