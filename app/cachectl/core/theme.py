"""Color theme for cachectl output.

The bundled ``data/theme.toml`` holds the default palette. A user
``theme.toml`` in the config directory may override any subset of it.
"""

import logging
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from cachectl.core.paths import get_config_dir

logger = logging.getLogger(__name__)

# Rich style name -> (color field, style prefix)
_STYLES: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "dim": ("muted", ""),
    "header": ("header", ""),
    "bold_header": ("header", "bold"),
    "border": ("border", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "info": ("info", ""),
    "size_large": ("size_large", "bold"),
    "size_medium": ("size_medium", ""),
    "size_small": ("size_small", ""),
    "ecosystem": ("ecosystem", ""),
    "orphaned": ("orphaned", ""),
    "project.name": ("text", "bold"),
    "project.path": ("muted", ""),
}


def _normalize_hex(field: str, value: object) -> str:
    if not isinstance(value, str):
        msg = f"{field}: color must be a string"
        raise ValueError(msg)
    color = value.strip()
    if not color.startswith("#"):
        msg = f"{field}: color must start with '#'"
        raise ValueError(msg)
    digits = color[1:]
    if len(digits) not in (3, 6):
        msg = f"{field}: color must be #RGB or #RRGGBB format"
        raise ValueError(msg)
    try:
        int(digits, 16)
    except ValueError:
        msg = f"{field}: invalid hex color '{color}'"
        raise ValueError(msg) from None
    return color


class ThemeColors(BaseModel):
    """Palette used by project and cache tables.

    Every value is a hex color (#RGB or #RRGGBB).
    """

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Cache sizes by magnitude
    size_large: str = "#f53263"
    size_medium: str = "#faf870"
    size_small: str = "#03b971"

    ecosystem: str = "#69B9A1"
    orphaned: str = "#d44ebc"

    @field_validator("*", mode="before")
    @classmethod
    def check_hex(cls, v: object, info: Any) -> str:
        """Reject anything that is not a hex color."""
        return _normalize_hex(info.field_name, v)


def get_user_theme_path() -> Path:
    """Path of the user's theme override file."""
    return get_config_dir() / "theme.toml"


def bundled_theme_path() -> Path:
    """Path of the default theme shipped with the package."""
    return Path(str(resources.files("cachectl.data").joinpath("theme.toml")))


def read_theme_file(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Non-string values are dropped.

    Args:
        path: Theme file to read.

    Returns:
        Color name to value mapping, or None if the file is missing,
        unreadable or not valid TOML.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None
    except OSError as e:
        logger.warning("Cannot read theme file %s: %s", path, e)
        return None

    table = data.get("colors", {})
    if not isinstance(table, dict):
        logger.warning("Theme file %s has no [colors] table", path)
        return None
    return {key: value for key, value in table.items() if isinstance(value, str)}


def load_theme(user_path: Path | None = None) -> ThemeColors:
    """Merge the user's overrides onto the bundled palette.

    Args:
        user_path: Override file. Defaults to :func:`get_user_theme_path`.

    Returns:
        The merged palette, or the built-in defaults if the merge is invalid.
    """
    colors = read_theme_file(bundled_theme_path())
    if colors is None:
        logger.error("Bundled theme is missing or unreadable")
        colors = {}

    path = user_path or get_user_theme_path()
    overrides = read_theme_file(path)
    if overrides:
        logger.debug("Applying %d color override(s) from %s", len(overrides), path)
        colors = {**colors, **overrides}

    try:
        return ThemeColors(**colors)
    except ValidationError as e:
        logger.warning("Invalid theme colors, using defaults: %s", e)
        return ThemeColors()


def build_rich_theme(colors: ThemeColors) -> Theme:
    """Turn a palette into the named Rich styles used by the CLI."""
    styles: dict[str, str] = {}
    for name, (field, prefix) in _STYLES.items():
        color = getattr(colors, field)
        styles[name] = f"{prefix} {color}" if prefix else color
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme(*, reload: bool = False) -> Theme:
    """Return the Rich theme, loading it on first use.

    Args:
        reload: Re-read the theme files instead of using the cached theme.
    """
    global _cached_theme
    if _cached_theme is None or reload:
        _cached_theme = build_rich_theme(load_theme())
    return _cached_theme
