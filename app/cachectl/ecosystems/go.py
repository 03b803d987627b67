"""Go ecosystem strategy.

Dependencies are listed with ``go list -m all``; the project cache is
the ``vendor`` directory; the global module cache is purged with
``go clean -modcache`` and unused requirements are pruned with
``go mod tidy``.
"""

import logging
import os
import weakref
from pathlib import Path

from cachectl.core.tools import ToolLocator
from cachectl.ecosystems.base import LIST_TIMEOUT, EcosystemStrategy
from cachectl.models.project import Dependency, Ecosystem, Project
from cachectl.utils.shell import CommandError

logger = logging.getLogger(__name__)


def escape_module_path(module: str) -> str:
    """Escape a module path the way the Go module cache stores it.

    Upper-case letters are written as "!" followed by the lower-case letter.

    Example:
        >>> escape_module_path("github.com/BurntSushi/toml")
        'github.com/!burnt!sushi/toml'
    """
    return "".join(f"!{c.lower()}" if c.isupper() else c for c in module)


def parse_module_line(line: str) -> tuple[str, str] | None:
    """Parse one line of ``go list -m all`` output.

    Args:
        line: e.g. "golang.org/x/text v0.14.0" or
            "example.com/lib v1.0.0 => ../lib".

    Returns:
        (module, version), or None for the main module, workspace modules
        and local path replacements.
    """
    left, _, right = line.partition("=>")
    parts = left.split()
    if len(parts) < 2:
        return None

    replacement = right.split()
    if replacement and replacement[0].startswith((".", "/")):
        return None

    return parts[0], parts[1]


class GoEcosystem(EcosystemStrategy):
    """Strategy for Go modules."""

    cache_dirs = ("vendor",)
    global_purge_args = ("clean", "-modcache")
    prune_args = ("mod", "tidy")

    def __init__(self) -> None:
        # GOMODCACHE resolved per locator
        self._modcache: weakref.WeakKeyDictionary[ToolLocator, Path] = weakref.WeakKeyDictionary()

    @property
    def ecosystem(self) -> Ecosystem:
        """Return GO as the ecosystem."""
        return Ecosystem.GO

    async def dependencies(self, project: Project, locator: ToolLocator) -> list[Dependency]:
        """List module requirements with ``go list -m all``.

        The first line (the main module) and local path replacements are
        skipped. A missing ``go`` executable yields an empty list.
        """
        go = await locator.locate(self.tool)
        if go is None:
            return []

        result = await locator.runner.execute(
            go,
            ["list", "-m", "all"],
            cwd=project.path,
            env=locator.environment,
            timeout=LIST_TIMEOUT,
        )

        modcache = await self._module_cache(locator)
        dependencies: list[Dependency] = []

        for line in result.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            parsed = parse_module_line(line)
            if parsed is None:
                logger.debug("Skipping go module line: %r", line)
                continue

            name, version = parsed
            cache_path: str | None = None
            if modcache is not None:
                candidate = modcache / f"{escape_module_path(name)}@{version}"
                if candidate.is_dir():
                    cache_path = str(candidate)

            dependencies.append(Dependency(name=name, version=version, cache_path=cache_path))

        return dependencies

    async def global_cache_dirs(self, locator: ToolLocator) -> list[Path]:
        """Return the module cache (GOMODCACHE)."""
        modcache = await self._module_cache(locator)
        return [modcache] if modcache is not None else []

    async def _module_cache(self, locator: ToolLocator) -> Path | None:
        """Resolve GOMODCACHE, preferring ``go env`` over the default location."""
        cached = self._modcache.get(locator)
        if cached is not None:
            return cached

        env = locator.environment
        if env.get("GOMODCACHE"):
            self._modcache[locator] = Path(env["GOMODCACHE"])
            return self._modcache[locator]

        go = await locator.locate(self.tool)
        if go is not None:
            try:
                result = await locator.runner.execute(go, ["env", "GOMODCACHE"], env=env)
                value = result.stdout.strip()
                if value:
                    self._modcache[locator] = Path(value)
                    return self._modcache[locator]
            except CommandError as e:
                logger.debug("go env GOMODCACHE failed: %s", e)

        gopath = env.get("GOPATH", "").split(os.pathsep)[0]
        base = Path(gopath) if gopath else self._home(locator) / "go"
        default = base / "pkg" / "mod"
        return default if default.is_dir() else None
