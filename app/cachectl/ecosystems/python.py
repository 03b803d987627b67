"""Python ecosystem strategy.

Dependencies come from ``requirements.txt``. Project caches are virtual
environments and tool caches at the project root plus every
``__pycache__`` directory in the tree.
"""

import logging
import re
from pathlib import Path

from cachectl.core.tools import ToolLocator
from cachectl.ecosystems.base import EcosystemStrategy
from cachectl.models.project import Dependency, Ecosystem, Project
from cachectl.utils.shell import CommandError

logger = logging.getLogger(__name__)

_REQUIREMENT = re.compile(
    r"^(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)\s*(?:\[[^\]]*\])?\s*(?P<constraint>.*)$"
)


def parse_requirement(line: str) -> Dependency | None:
    """Parse one requirements.txt line.

    Comments, blank lines, pip options ("-r", "--index-url", ...) and
    URL or path requirements yield None. Inline comments and environment
    markers are stripped.

    Example:
        >>> parse_requirement("requests>=2.31  # http").version
        '>=2.31'
    """
    line = line.split("#", 1)[0].split(";", 1)[0].strip()
    if not line or line.startswith("-"):
        return None

    match = _REQUIREMENT.match(line)
    if match is None:
        return None

    constraint = match.group("constraint").strip()
    if constraint.startswith("@") or "://" in constraint:
        return None

    return Dependency(name=match.group("name"), version=constraint or "unknown")


def parse_requirements(text: str) -> list[Dependency]:
    """Parse the contents of a requirements.txt file."""
    dependencies: list[Dependency] = []
    for raw in text.splitlines():
        dependency = parse_requirement(raw)
        if dependency is None:
            if raw.strip() and not raw.lstrip().startswith("#"):
                logger.debug("Skipping requirement line: %r", raw)
            continue
        dependencies.append(dependency)
    return dependencies


class PythonEcosystem(EcosystemStrategy):
    """Strategy for pip-managed Python projects."""

    cache_dirs = (".venv", ".tox", ".pytest_cache", ".mypy_cache", ".ruff_cache")
    recursive_cache_names = ("__pycache__",)
    global_purge_args = ("cache", "purge")

    @property
    def ecosystem(self) -> Ecosystem:
        """Return PYTHON as the ecosystem."""
        return Ecosystem.PYTHON

    async def dependencies(self, project: Project, locator: ToolLocator) -> list[Dependency]:
        """Read requirements.txt; the toolchain is not needed."""
        requirements = Path(project.path) / self.ecosystem.marker
        if not requirements.is_file():
            return []
        return parse_requirements(requirements.read_text(encoding="utf-8"))

    async def global_cache_dirs(self, locator: ToolLocator) -> list[Path]:
        """Return pip's wheel and HTTP cache (``pip cache dir``)."""
        pip = await locator.locate(self.tool)
        if pip is not None:
            try:
                result = await locator.runner.execute(
                    pip, ["cache", "dir"], env=locator.environment
                )
                value = result.stdout.strip()
                if value:
                    return [Path(value)]
            except CommandError as e:
                logger.debug("pip cache dir failed: %s", e)

        home = self._home(locator)
        xdg = locator.environment.get("XDG_CACHE_HOME")
        candidates = [
            (Path(xdg) if xdg else home / ".cache") / "pip",
            home / "Library" / "Caches" / "pip",
        ]
        return [p for p in candidates if p.is_dir()][:1]
