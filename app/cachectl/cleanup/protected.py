"""Protected filesystem paths that must never be deleted.

Arbitrary-directory deletion refuses any path that is, or lies under, a
system prefix, as well as the home directory itself and a handful of
security-sensitive locations inside it.
"""

import fnmatch
import os
from pathlib import Path

# System prefixes protected together with everything below them
PROTECTED_PREFIXES: tuple[str, ...] = (
    "/bin",
    "/boot",
    "/dev",
    "/etc",
    "/lib",
    "/lib32",
    "/lib64",
    "/libx32",
    "/proc",
    "/run",
    "/sbin",
    "/sys",
    "/usr",
    "/System",
    "/Library",
    "/Applications",
    "/private/etc",
    "/private/var/db",
)

# Directories protected only as themselves (their children are fair game)
PROTECTED_EXACT: tuple[str, ...] = (
    "/",
    "/home",
    "/Users",
    "/mnt",
    "/media",
    "/opt",
    "/private",
    "/private/var",
    "/root",
    "/srv",
    "/tmp",
    "/var",
    "/Volumes",
)

# Glob patterns below the home directory ("~" is expanded before matching)
PROTECTED_PATH_PATTERNS: list[str] = [
    # SSH and security
    "~/.ssh",
    "~/.ssh/*",
    "~/.gnupg",
    "~/.gnupg/*",
    # Desktop folders
    "~/Desktop",
    "~/Documents",
    "~/Downloads",
    # Keyrings
    "~/.local/share/keyrings",
    "~/Library/Keychains*",
    # cachectl itself
    "~/.config/cachectl",
    "~/.local/state/cachectl",
]


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def _matches(path: str, home: str) -> bool:
    if path in PROTECTED_EXACT or path == home:
        return True
    if any(_under(path, prefix) for prefix in PROTECTED_PREFIXES):
        return True
    for pattern in PROTECTED_PATH_PATTERNS:
        expanded = home + pattern[1:] if pattern.startswith("~") else pattern
        if fnmatch.fnmatch(path, expanded):
            return True
    return False


def is_protected_path(path: Path | str, home: Path | str | None = None) -> bool:
    """Check if a directory must not be deleted.

    Both the absolute path as given and its fully resolved form are
    checked, so symlinks into a protected prefix are refused too.

    Args:
        path: Directory to check ("~" is expanded).
        home: Home directory. If None, the current user's home.

    Returns:
        True if the path is protected, False otherwise.
    """
    home_str = os.path.normpath(str(home if home is not None else Path.home()))
    candidate = Path(path).expanduser()
    absolute = os.path.normpath(os.path.abspath(candidate))
    resolved = os.path.normpath(str(candidate.resolve()))

    return _matches(absolute, home_str) or _matches(resolved, home_str)
