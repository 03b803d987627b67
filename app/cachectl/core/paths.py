"""XDG-compliant path management for cachectl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration, state, and cache storage.

XDG defaults:
- Config: ~/.config/cachectl/
- State: ~/.local/state/cachectl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "cachectl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/cachectl/ (or XDG_CONFIG_HOME/cachectl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    Returns:
        Path to ~/.local/state/cachectl/ (or XDG_STATE_HOME/cachectl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_settings_path() -> Path:
    """Get the settings file path.

    The settings file holds the scan roots and per-tool path overrides,
    the only state that survives restarts.

    Returns:
        Path to ~/.config/cachectl/settings.toml.
    """
    return get_config_dir() / "settings.toml"


def get_last_scan_path() -> Path:
    """Get the last scan export path.

    Returns:
        Path to ~/.local/state/cachectl/last-scan.json.
    """
    return get_state_dir() / "last-scan.json"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")
