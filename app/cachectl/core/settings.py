"""Persistent user settings.

Scan roots and per-tool path overrides are the only state cachectl keeps
between runs. They are stored in ``~/.config/cachectl/settings.toml``
and validated with Pydantic models.
"""

import contextlib
import logging
import os
import tomllib
from collections.abc import Iterator
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cachectl.core.paths import get_settings_path

logger = logging.getLogger(__name__)

# Toolchains whose paths can be configured
SUPPORTED_TOOLS: tuple[str, ...] = ("go", "npm", "pip", "cargo")


class SettingsError(Exception):
    """Base exception for settings-related errors."""


class SettingsParseError(SettingsError):
    """Raised when the settings file cannot be parsed."""


class SettingsValidationError(SettingsError):
    """Raised when settings content is invalid."""


class ScanInProgressError(SettingsError):
    """Raised when scan roots are modified while a scan is running."""


class ToolOverride(BaseModel):
    """Path configuration for one toolchain executable.

    Attributes:
        path: Explicit executable path, used when auto_detect is off.
        auto_detect: Search well-known locations and PATH instead of ``path``.
    """

    model_config = ConfigDict(extra="forbid")

    path: Annotated[str | None, Field(description="Executable path")] = None
    auto_detect: Annotated[bool, Field(description="Locate the tool automatically")] = True

    @field_validator("path")
    @classmethod
    def normalize_path(cls, v: str | None) -> str | None:
        """Treat blank paths as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()


class ToolSettings(BaseModel):
    """Tool path overrides keyed by tool name."""

    model_config = ConfigDict(extra="forbid")

    tools: Annotated[
        dict[str, ToolOverride],
        Field(default_factory=dict, description="Per-tool overrides"),
    ]

    def override_for(self, tool: str) -> str | None:
        """Return the configured path for a tool, if auto-detect is off."""
        entry = self.tools.get(tool)
        if entry is None or entry.auto_detect:
            return None
        return entry.path

    def is_auto_detect(self, tool: str) -> bool:
        """Check if a tool is located automatically (the default)."""
        entry = self.tools.get(tool)
        return entry is None or entry.auto_detect

    def set_path(self, tool: str, path: str) -> None:
        """Pin a tool to an explicit path and disable auto-detection."""
        self.tools[tool] = ToolOverride(path=path, auto_detect=False)

    def enable_auto_detect(self, tool: str) -> None:
        """Return a tool to automatic detection, clearing its path."""
        self.tools[tool] = ToolOverride(path=None, auto_detect=True)


class Settings(BaseModel):
    """Complete persisted settings document.

    Attributes:
        scan_roots: Ordered directories searched for projects.
        tools: Tool path overrides.
    """

    model_config = ConfigDict(extra="forbid")

    scan_roots: Annotated[
        list[str],
        Field(default_factory=list, description="Directories scanned for projects"),
    ]
    tools: Annotated[
        dict[str, ToolOverride],
        Field(default_factory=dict, description="Per-tool path overrides"),
    ]

    def tool_settings(self) -> ToolSettings:
        """Return a copy of the tool overrides for a ToolLocator."""
        return ToolSettings(tools={k: v.model_copy() for k, v in self.tools.items()})


def _normalize_root(path: Path | str) -> str:
    """Normalize a scan root to an absolute path string."""
    return str(Path(path).expanduser().resolve())


class ScanDirectorySet:
    """Ordered, deduplicated set of scan root directories.

    The set can only change through :meth:`add` and :meth:`remove`, and
    refuses to change while a scan holds it via :meth:`scanning`.

    Example:
        >>> roots = ScanDirectorySet(["~/src"])
        >>> roots.add("~/work")
        True
        >>> with roots.scanning() as snapshot:
        ...     run_scan(snapshot)
    """

    def __init__(self, roots: list[str] | None = None) -> None:
        self._roots: list[str] = []
        self._active_scans = 0
        for root in roots or []:
            normalized = _normalize_root(root)
            if normalized not in self._roots:
                self._roots.append(normalized)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._roots))

    def __len__(self) -> int:
        return len(self._roots)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return _normalize_root(path) in self._roots

    @property
    def is_scanning(self) -> bool:
        """Check if a scan currently holds the set."""
        return self._active_scans > 0

    def to_list(self) -> list[str]:
        """Return the roots as a list, in order."""
        return list(self._roots)

    def add(self, path: Path | str) -> bool:
        """Append a root directory.

        Returns:
            True if added, False if it was already present.

        Raises:
            ScanInProgressError: If a scan is running.
        """
        self._check_mutable()
        normalized = _normalize_root(path)
        if normalized in self._roots:
            return False
        self._roots.append(normalized)
        return True

    def remove(self, path: Path | str) -> bool:
        """Remove a root directory.

        Returns:
            True if removed, False if it was not present.

        Raises:
            ScanInProgressError: If a scan is running.
        """
        self._check_mutable()
        normalized = _normalize_root(path)
        if normalized not in self._roots:
            return False
        self._roots.remove(normalized)
        return True

    @contextlib.contextmanager
    def scanning(self) -> Iterator[tuple[str, ...]]:
        """Hold the set for the duration of a scan.

        Yields:
            Snapshot of the roots taken when the scan started.
        """
        self._active_scans += 1
        try:
            yield tuple(self._roots)
        finally:
            self._active_scans -= 1

    def _check_mutable(self) -> None:
        if self.is_scanning:
            msg = "Scan directories cannot be changed while a scan is running"
            raise ScanInProgressError(msg)


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    A missing file yields default (empty) settings.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated Settings object.

    Raises:
        SettingsParseError: If the TOML syntax is invalid.
        SettingsValidationError: If the content doesn't match the schema.
        SettingsError: If the file cannot be read.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        logger.debug("No settings file at %s, using defaults", settings_path)
        return Settings()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsParseError(f"Invalid TOML syntax in {settings_path}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsValidationError(f"Invalid settings content: {e}") from e


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Save settings to a TOML file atomically.

    Args:
        settings: The Settings object to save.
        path: Path to save to. If None, uses the default path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    settings_path = path or get_settings_path()

    data = settings.model_dump(mode="json", exclude_none=True)

    tmp_path: Path | None = None
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write settings: {e}") from e

    return settings_path
