"""Directory size calculation.

Sums the on-disk size of every regular file below a directory using an
explicit stack of directories, so arbitrarily deep trees never hit the
recursion limit and no directory handle is held while descending.
"""

import logging
import os
import stat
from collections.abc import Collection
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Entries examined by a quick scan before it gives up
QUICK_SCAN_CAP: int = 5000


class EnumerationFailedError(OSError):
    """Raised when a directory root cannot be opened for listing."""


@dataclass(frozen=True, slots=True)
class QuickScan:
    """Result of a bounded quick scan.

    Attributes:
        entries_examined: Number of directory entries looked at.
        markers_found: Number of files whose name is one of the markers.
        truncated: True if the cap was reached before the walk finished.
    """

    entries_examined: int
    markers_found: int
    truncated: bool


def is_hidden(name: str) -> bool:
    """Check whether a directory entry name is hidden."""
    return name.startswith(".")


def _entry_size(entry: os.DirEntry[str], allocated: bool) -> int:
    """Return the size of a regular file entry without following symlinks."""
    info = entry.stat(follow_symlinks=False)
    if allocated:
        blocks = getattr(info, "st_blocks", None)
        if blocks is not None:
            return blocks * 512
    return info.st_size


class TreeSizeCalculator:
    """Recursively measures directory trees.

    Hidden entries are skipped and symlinks are never followed. Errors on
    individual entries (an unreadable subdirectory, a file vanishing
    mid-walk) are logged and skipped; only an unreadable root fails.

    Args:
        allocated: If True (default), count allocated blocks; otherwise
            count apparent file lengths.

    Example:
        >>> calculator = TreeSizeCalculator()
        >>> calculator.size(Path("~/src/app/node_modules").expanduser())
        184549376
    """

    def __init__(self, *, allocated: bool = True) -> None:
        self._allocated = allocated

    def size(self, directory: Path | str) -> int:
        """Sum the size of all regular files below a directory.

        Args:
            directory: Root directory to measure.

        Returns:
            Total size in bytes.

        Raises:
            EnumerationFailedError: If the root directory cannot be listed.
        """
        root = os.fspath(directory)
        try:
            root_iter = os.scandir(root)
        except OSError as e:
            msg = f"Cannot enumerate {root}: {e.strerror or e}"
            raise EnumerationFailedError(e.errno, msg, root) from e

        total = 0
        pending: list[os.ScandirIterator[str] | str] = [root_iter]

        while pending:
            item = pending.pop()
            if isinstance(item, str):
                try:
                    item = os.scandir(item)
                except OSError as e:
                    logger.debug("Skipping unreadable directory %s: %s", item, e)
                    continue

            subdirs: list[str] = []
            with item as entries:
                for entry in entries:
                    if is_hidden(entry.name):
                        continue
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            subdirs.append(entry.path)
                        elif entry.is_file(follow_symlinks=False):
                            total += _entry_size(entry, self._allocated)
                    except OSError as e:
                        logger.debug("Skipping %s: %s", entry.path, e)
            pending.extend(subdirs)

        return total

    def size_or_zero(self, directory: Path | str) -> int:
        """Measure a directory, returning 0 if it cannot be listed."""
        try:
            return self.size(directory)
        except EnumerationFailedError as e:
            logger.debug("Cannot measure %s: %s", directory, e)
            return 0

    def quick_scan(
        self,
        directory: Path | str,
        markers: Collection[str],
        cap: int = QUICK_SCAN_CAP,
    ) -> QuickScan:
        """Examine at most ``cap`` entries below a directory, counting markers.

        Used only to estimate whether a directory is worth scanning; the
        counts are never used for cleanup decisions.

        Args:
            directory: Root directory to sample.
            markers: Filenames to count.
            cap: Maximum number of entries to examine.

        Returns:
            QuickScan with the number of entries examined and markers found.

        Raises:
            EnumerationFailedError: If the root directory cannot be listed.
        """
        root = os.fspath(directory)
        try:
            with os.scandir(root):
                pass
        except OSError as e:
            msg = f"Cannot enumerate {root}: {e.strerror or e}"
            raise EnumerationFailedError(e.errno, msg, root) from e

        examined = 0
        found = 0
        pending = [root]

        while pending:
            current = pending.pop()
            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.debug("Skipping unreadable directory %s: %s", current, e)
                continue

            subdirs: list[str] = []
            for entry in entries:
                if examined >= cap:
                    return QuickScan(entries_examined=examined, markers_found=found, truncated=True)
                examined += 1
                if is_hidden(entry.name):
                    continue
                try:
                    if entry.is_dir(follow_symlinks=False):
                        subdirs.append(entry.path)
                    elif entry.name in markers:
                        found += 1
                except OSError:
                    continue
            # Reverse so the stack pops in listing order
            pending.extend(reversed(subdirs))

        return QuickScan(entries_examined=examined, markers_found=found, truncated=False)


def is_regular_directory(path: Path) -> bool:
    """Check that a path is a real directory (not a symlink to one)."""
    try:
        return stat.S_ISDIR(path.lstat().st_mode)
    except OSError:
        return False


def find_named_directories(root: Path | str, names: Collection[str]) -> list[Path]:
    """Find directories with one of the given names anywhere below a root.

    Hidden directories and symlinks are not entered, and a matching
    directory's own children are not searched.

    Args:
        root: Directory to search.
        names: Directory names to match (e.g. ``{"__pycache__"}``).

    Returns:
        Matching directories in walk order.
    """
    if not names:
        return []

    found: list[Path] = []
    pending = [os.fspath(root)]

    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)
            continue

        subdirs: list[str] = []
        for entry in entries:
            if is_hidden(entry.name):
                continue
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                continue
            if entry.name in names:
                found.append(Path(entry.path))
            else:
                subdirs.append(entry.path)
        pending.extend(reversed(subdirs))

    return found
