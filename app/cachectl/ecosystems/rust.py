"""Rust ecosystem strategy."""

import logging
import tomllib
from pathlib import Path
from typing import Any

from cachectl.core.tools import ToolLocator
from cachectl.ecosystems.base import EcosystemStrategy
from cachectl.models.project import Dependency, Ecosystem, Project

logger = logging.getLogger(__name__)

_DEPENDENCY_TABLES: tuple[str, ...] = ("dependencies", "dev-dependencies", "build-dependencies")


def _dependency_version(entry: Any) -> str | None:
    """Derive a version from a Cargo dependency value.

    Returns None for path-only dependencies (workspace members).
    """
    if isinstance(entry, str):
        return entry
    if not isinstance(entry, dict):
        return "unknown"
    if "version" in entry:
        return str(entry["version"])
    if "git" in entry:
        return "git"
    if "path" in entry:
        return None
    if entry.get("workspace"):
        return "workspace"
    return "unknown"


def parse_cargo_manifest(data: dict[str, Any]) -> list[Dependency]:
    """Extract dependencies from a parsed Cargo.toml document.

    Args:
        data: Document as returned by ``tomllib``.

    Returns:
        Dependencies from [dependencies], [dev-dependencies] and
        [build-dependencies], first declaration winning.
    """
    seen: set[str] = set()
    dependencies: list[Dependency] = []
    for table in _DEPENDENCY_TABLES:
        entries = data.get(table) or {}
        if not isinstance(entries, dict):
            continue
        for name, entry in entries.items():
            if name in seen:
                continue
            version = _dependency_version(entry)
            if version is None:
                logger.debug("Skipping path dependency: %s", name)
                continue
            seen.add(name)
            dependencies.append(Dependency(name=name, version=version))
    return dependencies


class RustEcosystem(EcosystemStrategy):
    """Strategy for Cargo projects.

    Cargo has no built-in global cache purge, and unused dependencies are
    removed by editing Cargo.toml, so neither command is offered.
    """

    cache_dirs = ("target",)

    @property
    def ecosystem(self) -> Ecosystem:
        """Return RUST as the ecosystem."""
        return Ecosystem.RUST

    async def dependencies(self, project: Project, locator: ToolLocator) -> list[Dependency]:
        """Read dependency tables from Cargo.toml."""
        manifest = Path(project.path) / self.ecosystem.marker
        if not manifest.is_file():
            return []
        with manifest.open("rb") as f:
            data = tomllib.load(f)
        return parse_cargo_manifest(data)

    async def global_cache_dirs(self, locator: ToolLocator) -> list[Path]:
        """Return Cargo's registry and git checkouts under CARGO_HOME."""
        cargo_home = locator.environment.get("CARGO_HOME")
        base = Path(cargo_home) if cargo_home else self._home(locator) / ".cargo"
        return [p for p in (base / "registry", base / "git") if p.is_dir()]
