"""Dependency inspection.

Dispatches to the ecosystem strategy of a project and never lets an
inspection failure escape: a project whose dependencies cannot be read
is reported with an empty list.
"""

import logging

from cachectl.core.tools import ToolLocator
from cachectl.ecosystems import STRATEGIES, EcosystemStrategy
from cachectl.models.project import Dependency, Ecosystem, Project
from cachectl.utils.shell import CommandError

logger = logging.getLogger(__name__)


class DependencyInspector:
    """Lists the dependencies of discovered projects.

    Args:
        locator: Locator for toolchain executables.
        strategies: Strategy table. If None, the built-in strategies.

    Example:
        >>> inspector = DependencyInspector(ToolLocator())
        >>> deps = await inspector.inspect(project)
    """

    def __init__(
        self,
        locator: ToolLocator,
        strategies: dict[Ecosystem, EcosystemStrategy] | None = None,
    ) -> None:
        self._locator = locator
        self._strategies = strategies if strategies is not None else STRATEGIES

    async def inspect(self, project: Project) -> list[Dependency]:
        """Return the project's dependencies, or an empty list on any failure.

        Args:
            project: Project to inspect.

        Returns:
            Dependencies reported by the ecosystem strategy.
        """
        strategy = self._strategies.get(project.ecosystem)
        if strategy is None:
            logger.warning("No strategy for ecosystem %s", project.ecosystem.value)
            return []

        try:
            return await strategy.dependencies(project, self._locator)
        except CommandError as e:
            logger.warning("Cannot list dependencies of %s: %s", project.path, e)
        except (OSError, ValueError) as e:
            logger.warning("Cannot read manifest of %s: %s", project.path, e)
        return []
