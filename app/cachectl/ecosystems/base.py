"""Abstract base class for ecosystem strategies.

This module defines the EcosystemStrategy interface. Every supported
ecosystem provides one strategy describing how its dependencies are
listed, where its caches live, and which toolchain commands purge or
prune them.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from cachectl.core.sizing import is_regular_directory
from cachectl.core.tools import ToolLocator
from cachectl.models.project import Dependency, Ecosystem, Project

# Timeout for dependency listing commands
LIST_TIMEOUT: float = 60.0


class EcosystemStrategy(ABC):
    """Abstract base class for all ecosystem strategies.

    Class attributes describe the on-disk conventions; methods that need
    the toolchain receive a ToolLocator.

    Attributes:
        cache_dirs: Cache/build directories directly below a project root.
        recursive_cache_names: Cache directory names scattered through the
            whole project tree (one per source directory).
        global_purge_args: Toolchain arguments that purge the global cache,
            or None if the ecosystem has no such command.
        prune_args: Toolchain arguments that remove unused dependencies,
            or None if unsupported.

    Example:
        >>> strategy = get_strategy(Ecosystem.NODE)
        >>> deps = await strategy.dependencies(project, locator)
    """

    cache_dirs: tuple[str, ...] = ()
    recursive_cache_names: tuple[str, ...] = ()
    global_purge_args: tuple[str, ...] | None = None
    prune_args: tuple[str, ...] | None = None

    @property
    @abstractmethod
    def ecosystem(self) -> Ecosystem:
        """Return the ecosystem this strategy handles."""

    @property
    def tool(self) -> str:
        """Name of the toolchain executable."""
        return self.ecosystem.tool

    @abstractmethod
    async def dependencies(self, project: Project, locator: ToolLocator) -> list[Dependency]:
        """List the project's declared dependencies.

        Args:
            project: Project to inspect.
            locator: Locator for the ecosystem's toolchain.

        Returns:
            Dependencies in declaration order; empty if the manifest or
            toolchain is missing.

        Raises:
            CommandError: If the toolchain fails.
            OSError: If a manifest cannot be read.
            ValueError: If a manifest cannot be parsed.
        """

    @abstractmethod
    async def global_cache_dirs(self, locator: ToolLocator) -> list[Path]:
        """Return the ecosystem's global (per-user) cache directories."""

    def cache_paths(self, project_root: Path) -> list[Path]:
        """Return the cache directories present below a project root."""
        return [
            project_root / name
            for name in self.cache_dirs
            if is_regular_directory(project_root / name)
        ]

    def _home(self, locator: ToolLocator) -> Path:
        home = locator.environment.get("HOME")
        return Path(home) if home else Path.home()
