"""Toolchain executable discovery.

Resolves the absolute path of a toolchain (go, npm, pip, cargo) from a
user override, well-known install locations, or a ``which`` lookup, and
reports the installed version.
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from cachectl.core.environment import build_tool_environment
from cachectl.core.settings import SUPPORTED_TOOLS, ToolSettings
from cachectl.utils.shell import CommandError, ProcessRunner

logger = logging.getLogger(__name__)

# Timeout for `which` and version queries
_QUERY_TIMEOUT: float = 10.0

_VERSION_PATTERN = re.compile(r"\d+(?:\.\d+)+")


@dataclass(frozen=True, slots=True)
class ToolInfo:
    """Static description of a supported toolchain.

    Attributes:
        name: Executable name.
        display_name: Human-readable name.
        description: What the tool is.
        common_paths: Well-known install locations ("~" allowed).
        version_args: Arguments that print the version.
    """

    name: str
    display_name: str
    description: str
    common_paths: tuple[str, ...]
    version_args: tuple[str, ...] = ("--version",)


TOOL_INFO: dict[str, ToolInfo] = {
    "go": ToolInfo(
        name="go",
        display_name="Go",
        description="Go toolchain",
        common_paths=(
            "/usr/local/go/bin/go",
            "/opt/homebrew/bin/go",
            "/usr/local/bin/go",
            "/usr/lib/go/bin/go",
            "/usr/bin/go",
            "~/go/bin/go",
            "~/sdk/go/bin/go",
        ),
        version_args=("version",),
    ),
    "npm": ToolInfo(
        name="npm",
        display_name="npm",
        description="Node.js package manager",
        common_paths=(
            "/usr/local/bin/npm",
            "/opt/homebrew/bin/npm",
            "/usr/bin/npm",
            "~/.npm-global/bin/npm",
            "~/.volta/bin/npm",
        ),
    ),
    "pip": ToolInfo(
        name="pip",
        display_name="pip",
        description="Python package installer",
        common_paths=(
            "/usr/local/bin/pip",
            "/opt/homebrew/bin/pip",
            "/usr/bin/pip",
            "/usr/local/bin/pip3",
            "/opt/homebrew/bin/pip3",
            "/usr/bin/pip3",
            "~/.local/bin/pip",
            "~/.local/bin/pip3",
        ),
    ),
    "cargo": ToolInfo(
        name="cargo",
        display_name="Cargo",
        description="Rust package manager and build tool",
        common_paths=(
            "~/.cargo/bin/cargo",
            "/usr/local/bin/cargo",
            "/opt/homebrew/bin/cargo",
            "/usr/bin/cargo",
        ),
    ),
}


@dataclass(frozen=True, slots=True)
class ToolStatus:
    """Diagnostic entry for one toolchain.

    Attributes:
        name: Tool name.
        path: Resolved executable path, if found.
        version: Reported version, if it could be parsed.
        auto_detect: Whether the tool is located automatically.
    """

    name: str
    path: str | None
    version: str | None
    auto_detect: bool = True

    @property
    def available(self) -> bool:
        """Check if the tool was found."""
        return self.path is not None


def is_executable(path: Path | str) -> bool:
    """Check that a path is an executable regular file."""
    candidate = Path(path)
    return candidate.is_file() and os.access(candidate, os.X_OK)


def parse_version(output: str) -> str | None:
    """Extract the first version-looking token from the first output line.

    Args:
        output: Output of the tool's version command.

    Returns:
        Version such as "1.22.1", or None if none could be found.

    Example:
        >>> parse_version("go version go1.22.1 linux/amd64")
        '1.22.1'
    """
    lines = output.strip().splitlines()
    if not lines:
        return None
    for token in lines[0].split():
        match = _VERSION_PATTERN.search(token)
        if match:
            return match.group(0)
    return None


class ToolLocator:
    """Locates toolchain executables and queries their versions.

    Resolution order for :meth:`locate`:
    1. the user's override path (auto-detect off), if executable;
    2. the tool's well-known install locations;
    3. ``which <tool>`` run with the augmented tool environment.

    Results are cached for the lifetime of the locator.

    Args:
        settings: Tool path overrides.
        runner: Process runner used for ``which`` and version queries.
        env: Environment for tool processes. If None, built from the OS.
    """

    def __init__(
        self,
        settings: ToolSettings | None = None,
        runner: ProcessRunner | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._settings = settings.model_copy(deep=True) if settings else ToolSettings()
        self._runner = runner or ProcessRunner()
        self._env = dict(env) if env is not None else build_tool_environment()
        self._cache: dict[str, str | None] = {}

    @property
    def environment(self) -> dict[str, str]:
        """Environment passed to every tool process."""
        return dict(self._env)

    @property
    def runner(self) -> ProcessRunner:
        """Process runner shared with callers."""
        return self._runner

    def _home(self) -> str:
        return self._env.get("HOME") or str(Path.home())

    def candidate_paths(self, tool: str) -> list[str]:
        """Return the well-known install locations for a tool."""
        info = TOOL_INFO.get(tool)
        if info is None:
            return []
        home = self._home()
        return [home + p[1:] if p.startswith("~") else p for p in info.common_paths]

    async def locate(self, tool: str) -> str | None:
        """Resolve the absolute path of a tool.

        Args:
            tool: Tool name (e.g. "go").

        Returns:
            Absolute path to the executable, or None if it cannot be found.
        """
        if tool in self._cache:
            return self._cache[tool]

        path = await self._resolve(tool)
        self._cache[tool] = path
        if path is None:
            logger.info("Tool not found: %s", tool)
        else:
            logger.debug("Resolved %s -> %s", tool, path)
        return path

    async def _resolve(self, tool: str) -> str | None:
        override = self._settings.override_for(tool)
        if override is not None:
            expanded = os.path.expanduser(override)
            if is_executable(expanded):
                return expanded
            logger.warning("Configured path for %s is not executable: %s", tool, override)

        for candidate in self.candidate_paths(tool):
            if is_executable(candidate):
                return candidate

        try:
            result = await self._runner.execute(
                "which",
                [tool],
                env=self._env,
                timeout=_QUERY_TIMEOUT,
            )
        except CommandError as e:
            logger.debug("which %s failed: %s", tool, e)
            return None

        found = result.stdout.strip().splitlines()
        return found[0].strip() if found and found[0].strip() else None

    async def exists(self, tool: str) -> bool:
        """Check whether a tool can be located."""
        return await self.locate(tool) is not None

    async def version(self, tool: str) -> str | None:
        """Return the version reported by a tool.

        Never raises: a missing tool, a failing version command or
        unparseable output all yield None.
        """
        path = await self.locate(tool)
        if path is None:
            return None

        info = TOOL_INFO.get(tool)
        args = info.version_args if info else ("--version",)
        try:
            result = await self._runner.execute(path, args, env=self._env, timeout=_QUERY_TIMEOUT)
        except CommandError as e:
            logger.debug("Version query for %s failed: %s", tool, e)
            return None
        return parse_version(result.stdout or result.stderr)

    async def diagnose(self) -> list[ToolStatus]:
        """Report path, version and availability of every supported tool."""
        statuses: list[ToolStatus] = []
        for tool in SUPPORTED_TOOLS:
            path = await self.locate(tool)
            version = await self.version(tool) if path else None
            statuses.append(
                ToolStatus(
                    name=tool,
                    path=path,
                    version=version,
                    auto_detect=self._settings.is_auto_detect(tool),
                )
            )
        return statuses
