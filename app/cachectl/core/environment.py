"""Environment construction for toolchain processes.

Toolchains are often installed into directories that only an
interactive login shell puts on PATH (Homebrew, ~/.cargo/bin, ~/go/bin).
The environment built here merges the inherited PATH, well-known install
directories and whatever PATH the user's shell start-up files export.
"""

import logging
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

# Install locations added to PATH for every tool process ("~" is expanded)
COMMON_BIN_DIRS: tuple[str, ...] = (
    "/usr/local/bin",
    "/usr/bin",
    "/bin",
    "/usr/sbin",
    "/sbin",
    "/opt/homebrew/bin",
    "/usr/local/go/bin",
    "~/go/bin",
    "~/.cargo/bin",
    "~/.local/bin",
    "~/.npm-global/bin",
)

# Shell start-up files scraped for PATH exports, in order
SHELL_STARTUP_FILES: tuple[str, ...] = (
    ".zshrc",
    ".zprofile",
    ".bash_profile",
    ".bashrc",
    ".profile",
)

_EXPORT_PATH = re.compile(r"^\s*(?:export\s+)?PATH\s*=\s*(?P<value>.+?)\s*(?:#.*)?$")
_VARIABLE = re.compile(r"\$(?:\{(?P<braced>\w+)\}|(?P<plain>\w+))")


def _unique(entries: Iterable[str]) -> list[str]:
    """Drop empty and duplicate entries, keeping first occurrences."""
    seen: set[str] = set()
    result: list[str] = []
    for entry in entries:
        if entry and entry not in seen:
            seen.add(entry)
            result.append(entry)
    return result


def _expand(value: str, home: str) -> list[str]:
    """Expand one PATH assignment value into directory entries.

    References to ``$PATH`` are dropped (the inherited PATH is merged
    separately); ``~`` and ``$HOME`` are expanded; other variables are
    left out because they cannot be resolved without running the shell.
    """
    value = value.strip().strip("\"'")
    entries: list[str] = []
    for part in value.split(":"):
        part = part.strip()
        if not part:
            continue
        if part.startswith("~"):
            part = home + part[1:]

        unresolved = False

        def _substitute(match: re.Match[str]) -> str:
            nonlocal unresolved
            name = match.group("braced") or match.group("plain")
            if name == "HOME":
                return home
            unresolved = True
            return ""

        expanded = _VARIABLE.sub(_substitute, part)
        if unresolved or not expanded.startswith("/"):
            continue
        entries.append(expanded)
    return entries


def scrape_shell_path(home: Path, files: Iterable[str] = SHELL_STARTUP_FILES) -> list[str]:
    """Collect PATH entries exported by the user's shell start-up files.

    This is best effort: unreadable or missing files are ignored, and any
    entry depending on variables other than HOME or PATH is skipped.

    Args:
        home: The user's home directory.
        files: Start-up file names relative to ``home``.

    Returns:
        PATH entries in the order they were found.
    """
    entries: list[str] = []
    for name in files:
        rc_file = home / name
        try:
            text = rc_file.read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        for line in text.splitlines():
            match = _EXPORT_PATH.match(line)
            if match:
                entries.extend(_expand(match.group("value"), str(home)))

    if entries:
        logger.debug("Scraped %d PATH entries from shell start-up files", len(entries))
    return _unique(entries)


def build_tool_environment(
    base: Mapping[str, str] | None = None,
    home: Path | None = None,
    shell_files: Iterable[str] = SHELL_STARTUP_FILES,
) -> dict[str, str]:
    """Build the environment for toolchain child processes.

    Args:
        base: Environment to start from. If None, uses ``os.environ``.
        home: Home directory. If None, resolved from ``base`` or the OS.
        shell_files: Shell start-up files scraped for PATH exports.

    Returns:
        A new environment mapping with an augmented PATH and HOME set.
    """
    env = dict(os.environ if base is None else base)

    if home is None:
        home = Path(env["HOME"]) if env.get("HOME") else Path.home()
    home_str = str(home)

    system_path = env.get("PATH", "").split(os.pathsep)
    common = [home_str + d[1:] if d.startswith("~") else d for d in COMMON_BIN_DIRS]

    scraped = scrape_shell_path(home, shell_files)

    env["PATH"] = os.pathsep.join(_unique([*system_path, *common, *scraped]))
    env["HOME"] = home_str
    return env
