"""Project models for ecosystem discovery and cache accounting.

This module defines the core data structures for representing
development projects, their declared dependencies, and the cache
directories that can be reclaimed.
"""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Ecosystem(str, Enum):
    """Supported development ecosystems.

    Each ecosystem is identified by the marker file found at a project
    root and is served by one toolchain executable.

    Attributes:
        GO: Go modules (go.mod).
        NODE: Node.js packages (package.json).
        PYTHON: Python requirements (requirements.txt).
        RUST: Rust crates built with Cargo (Cargo.toml).
    """

    GO = "go"
    NODE = "node"
    PYTHON = "python"
    RUST = "rust"

    @property
    def marker(self) -> str:
        """Marker filename identifying a project root."""
        return _MARKERS[self]

    @property
    def display_name(self) -> str:
        """Human-readable ecosystem name."""
        return _DISPLAY_NAMES[self]

    @property
    def tool(self) -> str:
        """Name of the toolchain executable for this ecosystem."""
        return _TOOLS[self]

    @classmethod
    def from_marker(cls, filename: str) -> "Ecosystem | None":
        """Return the ecosystem whose marker matches a filename, if any."""
        for ecosystem in cls:
            if ecosystem.marker == filename:
                return ecosystem
        return None


_MARKERS: dict[Ecosystem, str] = {
    Ecosystem.GO: "go.mod",
    Ecosystem.NODE: "package.json",
    Ecosystem.PYTHON: "requirements.txt",
    Ecosystem.RUST: "Cargo.toml",
}

_DISPLAY_NAMES: dict[Ecosystem, str] = {
    Ecosystem.GO: "Go",
    Ecosystem.NODE: "Node.js",
    Ecosystem.PYTHON: "Python",
    Ecosystem.RUST: "Rust",
}

_TOOLS: dict[Ecosystem, str] = {
    Ecosystem.GO: "go",
    Ecosystem.NODE: "npm",
    Ecosystem.PYTHON: "pip",
    Ecosystem.RUST: "cargo",
}


@dataclass(frozen=True, slots=True)
class Dependency:
    """A dependency declared by (or installed for) a project.

    Attributes:
        name: Package or module name.
        version: Declared version or constraint ("unknown" if absent).
        size_bytes: Size on disk if resolvable, 0 otherwise.
        cache_path: Location of the installed copy, if known.
        orphaned: True if the project no longer resolves this dependency.
    """

    name: str
    version: str = "unknown"
    size_bytes: int = 0
    cache_path: str | None = None
    orphaned: bool = False

    def __post_init__(self) -> None:
        """Validate dependency data after initialization."""
        if not self.name:
            msg = "Dependency name cannot be empty"
            raise ValueError(msg)
        if self.size_bytes < 0:
            msg = f"Dependency size cannot be negative, got {self.size_bytes}"
            raise ValueError(msg)

    @property
    def display_name(self) -> str:
        """Return "name version" for display."""
        return f"{self.name} {self.version}"


@dataclass(frozen=True, slots=True)
class Project:
    """A development project discovered by its marker file.

    Projects are immutable; a rescan produces new instances with the same
    ``id`` rather than mutating existing ones.

    Attributes:
        id: Stable handle derived from ecosystem and root path.
        name: Display name (the root directory name).
        path: Absolute path of the project root.
        ecosystem: Ecosystem whose marker was found in the root.
        last_modified: Modification time of the root directory.
        dependencies: Declared dependencies, in manifest order.
        cache_size: Total size in bytes of the project's cache directories.
    """

    id: str
    name: str
    path: str
    ecosystem: Ecosystem
    last_modified: datetime
    dependencies: tuple[Dependency, ...] = field(default=())
    cache_size: int = 0

    def __post_init__(self) -> None:
        """Validate project data after initialization."""
        if not self.path:
            msg = "Project path cannot be empty"
            raise ValueError(msg)
        if self.cache_size < 0:
            msg = f"Cache size cannot be negative, got {self.cache_size}"
            raise ValueError(msg)

    @staticmethod
    def make_id(ecosystem: Ecosystem, path: str) -> str:
        """Build the stable project handle for an ecosystem and root path."""
        digest = hashlib.sha1(f"{ecosystem.value}:{path}".encode(), usedforsecurity=False)
        return digest.hexdigest()[:16]

    @property
    def marker_path(self) -> str:
        """Path of the marker file that identified this project."""
        return f"{self.path.rstrip('/')}/{self.ecosystem.marker}"

    @property
    def orphaned_dependencies(self) -> tuple[Dependency, ...]:
        """Dependencies flagged as orphaned."""
        return tuple(dep for dep in self.dependencies if dep.orphaned)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cache or build-artifact location used for global accounting.

    Attributes:
        path: Absolute path of the cache directory.
        ecosystem: Ecosystem the cache belongs to.
        size_bytes: Measured size in bytes.
        last_accessed: Last access time of the cache directory.
        orphaned: True if no live project references this cache.
    """

    path: str
    ecosystem: Ecosystem
    size_bytes: int
    last_accessed: datetime
    orphaned: bool = False
