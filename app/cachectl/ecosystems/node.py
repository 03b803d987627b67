"""Node.js ecosystem strategy.

Dependencies are read from ``package.json``; installed copies under
``node_modules`` provide sizes, and installed packages that are no
longer declared are reported as orphaned.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from cachectl.core.sizing import TreeSizeCalculator, is_hidden, is_regular_directory
from cachectl.core.tools import ToolLocator
from cachectl.ecosystems.base import EcosystemStrategy
from cachectl.models.project import Dependency, Ecosystem, Project
from cachectl.utils.shell import CommandError

logger = logging.getLogger(__name__)

_DEPENDENCY_SECTIONS: tuple[str, ...] = ("dependencies", "devDependencies")


def _read_json(path: Path) -> dict[str, Any] | None:
    """Read a JSON object from a file, or None if absent."""
    if not path.is_file():
        return None
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        msg = f"Expected a JSON object in {path}"
        raise ValueError(msg)
    return data


def declared_dependencies(manifest: dict[str, Any]) -> dict[str, str]:
    """Return {name: version constraint} from a package.json document."""
    declared: dict[str, str] = {}
    for section in _DEPENDENCY_SECTIONS:
        entries = manifest.get(section) or {}
        if not isinstance(entries, dict):
            continue
        for name, version in entries.items():
            if name not in declared:
                declared[name] = str(version) if version else "unknown"
    return declared


def installed_packages(node_modules: Path) -> list[str]:
    """List top-level package names installed in node_modules.

    Scoped packages are returned as "@scope/name".
    """
    if not is_regular_directory(node_modules):
        return []

    names: list[str] = []
    for entry in sorted(node_modules.iterdir()):
        if is_hidden(entry.name) or not entry.is_dir():
            continue
        if entry.name.startswith("@"):
            names.extend(
                f"{entry.name}/{child.name}"
                for child in sorted(entry.iterdir())
                if child.is_dir() and not is_hidden(child.name)
            )
        else:
            names.append(entry.name)
    return names


class NodeEcosystem(EcosystemStrategy):
    """Strategy for Node.js packages managed by npm."""

    cache_dirs = ("node_modules",)
    global_purge_args = ("cache", "clean", "--force")
    prune_args = ("prune",)

    def __init__(self, sizer: TreeSizeCalculator | None = None) -> None:
        self._sizer = sizer or TreeSizeCalculator()

    @property
    def ecosystem(self) -> Ecosystem:
        """Return NODE as the ecosystem."""
        return Ecosystem.NODE

    async def dependencies(self, project: Project, locator: ToolLocator) -> list[Dependency]:
        """Read declared dependencies from package.json.

        Installed packages missing from the manifest are appended with
        ``orphaned=True`` and their installed version. Reading and sizing
        ``node_modules`` runs in a worker thread.
        """
        return await asyncio.to_thread(self._read_dependencies, Path(project.path))

    def _read_dependencies(self, root: Path) -> list[Dependency]:
        manifest = _read_json(root / "package.json")
        if manifest is None:
            return []

        declared = declared_dependencies(manifest)
        node_modules = root / "node_modules"
        dependencies: list[Dependency] = []

        for name, version in declared.items():
            installed = node_modules / name
            if is_regular_directory(installed):
                dependencies.append(
                    Dependency(
                        name=name,
                        version=version,
                        size_bytes=self._sizer.size_or_zero(installed),
                        cache_path=str(installed),
                    )
                )
            else:
                dependencies.append(Dependency(name=name, version=version))

        for name in installed_packages(node_modules):
            if name in declared:
                continue
            installed = node_modules / name
            version = "unknown"
            try:
                package = _read_json(installed / "package.json")
                if package and package.get("version"):
                    version = str(package["version"])
            except (OSError, ValueError) as e:
                logger.debug("Cannot read version of %s: %s", installed, e)
            dependencies.append(
                Dependency(
                    name=name,
                    version=version,
                    size_bytes=self._sizer.size_or_zero(installed),
                    cache_path=str(installed),
                    orphaned=True,
                )
            )

        return dependencies

    async def global_cache_dirs(self, locator: ToolLocator) -> list[Path]:
        """Return npm's cache directory (``npm config get cache``)."""
        npm = await locator.locate(self.tool)
        if npm is not None:
            try:
                result = await locator.runner.execute(
                    npm,
                    ["config", "get", "cache"],
                    env=locator.environment,
                )
                value = result.stdout.strip()
                if value:
                    return [Path(value)]
            except CommandError as e:
                logger.debug("npm config get cache failed: %s", e)

        default = self._home(locator) / ".npm"
        return [default] if default.is_dir() else []
