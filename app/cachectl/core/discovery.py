"""Project discovery by ecosystem marker files.

Walks scan roots looking for marker files (``go.mod``, ``package.json``,
``requirements.txt``, ``Cargo.toml``) and turns every directory holding
one into a Project record.
"""

import logging
import os
from collections.abc import Callable, Collection, Iterable
from datetime import UTC, datetime
from pathlib import Path

from cachectl.core.sizing import EnumerationFailedError, TreeSizeCalculator, is_hidden
from cachectl.models.project import Ecosystem, Project
from cachectl.models.scan import DirectoryValidation, RootFailure, ValidationStatus

logger = logging.getLogger(__name__)

# Directory suffixes treated as opaque bundles (never descended into)
BUNDLE_SUFFIXES: frozenset[str] = frozenset(
    {
        ".app",
        ".bundle",
        ".framework",
        ".kext",
        ".plugin",
        ".photoslibrary",
        ".xcarchive",
        ".xcodeproj",
        ".xcworkspace",
    }
)

# Dependency stores whose nested manifests belong to third-party packages
SKIP_DIRECTORIES: frozenset[str] = frozenset(
    {
        "node_modules",
        "__pycache__",
        "site-packages",
    }
)


def _should_descend(name: str, skip: Collection[str]) -> bool:
    """Check whether the walk may enter a directory with this name."""
    if is_hidden(name) or name in skip:
        return False
    return os.path.splitext(name)[1].lower() not in BUNDLE_SUFFIXES


def _last_modified(path: Path) -> datetime:
    """Return the modification time of a path, or now if unavailable."""
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
    except OSError:
        return datetime.now(UTC)


def make_project(directory: Path, ecosystem: Ecosystem) -> Project:
    """Build an unannotated Project for a marker-containing directory.

    Args:
        directory: Absolute project root.
        ecosystem: Ecosystem whose marker is present.

    Returns:
        Project without dependencies and with zero cache size.
    """
    path = str(directory)
    return Project(
        id=Project.make_id(ecosystem, path),
        name=directory.name or path,
        path=path,
        ecosystem=ecosystem,
        last_modified=_last_modified(directory),
    )


class ProjectDiscoverer:
    """Finds project roots below a set of scan directories.

    Hidden entries, bundle-like directories and, by default, dependency
    stores such as ``node_modules`` are never descended into. Listings are sorted,
    so the project order is deterministic for a given root.

    Args:
        sizer: Calculator used for quick validation scans.
        skip_dirs: Directory names never descended into. Pass an empty
            collection to also report manifests inside dependency stores.

    Attributes:
        failures: Roots that failed during the last :meth:`discover` call.

    Example:
        >>> discoverer = ProjectDiscoverer()
        >>> for project in discoverer.discover([Path.home() / "src"], Ecosystem.GO):
        ...     print(project.name, project.path)
    """

    def __init__(
        self,
        sizer: TreeSizeCalculator | None = None,
        skip_dirs: Collection[str] = SKIP_DIRECTORIES,
    ) -> None:
        self._sizer = sizer or TreeSizeCalculator()
        self._skip_dirs = frozenset(skip_dirs)
        self.failures: list[RootFailure] = []

    def discover(
        self,
        roots: Iterable[Path | str],
        ecosystem: Ecosystem,
        should_stop: Callable[[], bool] | None = None,
    ) -> list[Project]:
        """Discover projects of one ecosystem below every root.

        A root that cannot be enumerated is recorded in ``failures`` and
        the remaining roots are still scanned.

        Args:
            roots: Directories to search.
            ecosystem: Ecosystem whose marker file identifies projects.
            should_stop: Optional callable; when it returns True no further
                directories are walked.

        Returns:
            One Project per distinct marker-containing directory.
        """
        self.failures = []
        projects: list[Project] = []
        seen: set[str] = set()

        for root in roots:
            if should_stop is not None and should_stop():
                break
            try:
                found = self.discover_root(root, ecosystem, should_stop)
            except EnumerationFailedError as e:
                logger.warning("Cannot scan %s: %s", root, e)
                self.failures.append(
                    RootFailure(root=str(root), ecosystem=ecosystem, message=str(e))
                )
                continue

            for project in found:
                if project.path in seen:
                    continue
                seen.add(project.path)
                projects.append(project)

        return projects

    def discover_root(
        self,
        root: Path | str,
        ecosystem: Ecosystem,
        should_stop: Callable[[], bool] | None = None,
    ) -> list[Project]:
        """Discover projects of one ecosystem below a single root.

        Args:
            root: Directory to search.
            ecosystem: Ecosystem whose marker file identifies projects.
            should_stop: Optional cancellation check, polled per directory.

        Returns:
            Projects in walk order.

        Raises:
            EnumerationFailedError: If the root itself cannot be listed.
        """
        root_path = Path(root).expanduser()
        marker = ecosystem.marker
        project_dirs: list[Path] = []

        for directory, names in self._walk(root_path, should_stop):
            if marker in names:
                project_dirs.append(directory)

        logger.debug("Found %d %s projects in %s", len(project_dirs), ecosystem.value, root_path)
        return [make_project(d, ecosystem) for d in project_dirs]

    def _walk(
        self,
        root: Path,
        should_stop: Callable[[], bool] | None,
    ) -> Iterable[tuple[Path, set[str]]]:
        """Yield (directory, regular file names) pairs, depth first.

        Raises:
            EnumerationFailedError: If the root cannot be listed.
        """
        try:
            with os.scandir(root):
                pass
        except OSError as e:
            msg = f"Cannot enumerate {root}: {e.strerror or e}"
            raise EnumerationFailedError(e.errno, msg, str(root)) from e

        stack: list[Path] = [root]
        while stack:
            if should_stop is not None and should_stop():
                return
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.debug("Skipping unreadable directory %s: %s", current, e)
                continue

            files: set[str] = set()
            subdirs: list[Path] = []
            for entry in entries:
                if is_hidden(entry.name):
                    continue
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if _should_descend(entry.name, self._skip_dirs):
                            subdirs.append(Path(entry.path))
                    elif entry.is_file():
                        files.add(entry.name)
                except OSError as e:
                    logger.debug("Skipping %s: %s", entry.path, e)

            yield current, files
            stack.extend(reversed(subdirs))

    def validate(self, directory: Path | str) -> DirectoryValidation:
        """Check whether a directory is worth adding as a scan root.

        Args:
            directory: Candidate scan directory.

        Returns:
            INVALID if missing, not a directory or unreadable; WARNING if a
            quick scan finds no project markers; VALID otherwise.
        """
        path = Path(directory).expanduser()

        if not path.exists():
            msg = f"Directory does not exist: {path}"
            return DirectoryValidation(ValidationStatus.INVALID, msg)
        if not path.is_dir():
            return DirectoryValidation(ValidationStatus.INVALID, f"Not a directory: {path}")
        if not os.access(path, os.R_OK | os.X_OK):
            msg = f"Directory is not readable: {path}"
            return DirectoryValidation(ValidationStatus.INVALID, msg)

        markers = {ecosystem.marker for ecosystem in Ecosystem}
        try:
            sample = self._sizer.quick_scan(path, markers)
        except EnumerationFailedError as e:
            return DirectoryValidation(ValidationStatus.INVALID, str(e))

        if sample.markers_found == 0:
            qualifier = " in the first entries sampled" if sample.truncated else ""
            return DirectoryValidation(
                ValidationStatus.WARNING,
                f"No project files found{qualifier}: {path}",
            )

        count = f"~{sample.markers_found}" if sample.truncated else str(sample.markers_found)
        return DirectoryValidation(
            ValidationStatus.VALID,
            f"Found {count} project file(s) in {path}",
        )


def detect_ecosystems(directory: Path) -> list[Ecosystem]:
    """Return the ecosystems whose marker file is present in a directory."""
    return [e for e in Ecosystem if (directory / e.marker).is_file()]


def project_from_directory(directory: Path | str, ecosystem: Ecosystem | None = None) -> Project:
    """Build a Project for a single directory.

    Args:
        directory: Candidate project root.
        ecosystem: Ecosystem to use. If None, detected from marker files.

    Returns:
        Unannotated Project for the directory.

    Raises:
        ValueError: If no marker is present or the ecosystem is ambiguous.
    """
    path = Path(directory).expanduser().resolve()
    if not path.is_dir():
        msg = f"Not a directory: {path}"
        raise ValueError(msg)

    found = detect_ecosystems(path)
    if ecosystem is not None:
        if ecosystem not in found:
            msg = f"No {ecosystem.marker} found in {path}"
            raise ValueError(msg)
        return make_project(path, ecosystem)

    if not found:
        markers = ", ".join(e.marker for e in Ecosystem)
        msg = f"No project marker ({markers}) found in {path}"
        raise ValueError(msg)
    if len(found) > 1:
        names = ", ".join(e.value for e in found)
        msg = f"Multiple ecosystems found in {path} ({names}); pass --ecosystem"
        raise ValueError(msg)
    return make_project(path, found[0])
