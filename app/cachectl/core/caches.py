"""Global cache accounting.

Measures the per-user caches of every ecosystem (module cache, npm
cache, pip cache, Cargo registry) and flags the ones no discovered
project uses any more.
"""

import asyncio
import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from cachectl.core.sizing import TreeSizeCalculator
from cachectl.core.tools import ToolLocator
from cachectl.ecosystems import STRATEGIES
from cachectl.models.project import CacheEntry, Ecosystem, Project

logger = logging.getLogger(__name__)


def _last_accessed(path: Path) -> datetime:
    try:
        return datetime.fromtimestamp(path.stat().st_atime, tz=UTC)
    except OSError:
        return datetime.now(UTC)


async def collect_cache_entries(
    projects: Iterable[Project],
    locator: ToolLocator,
    ecosystems: Iterable[Ecosystem] | None = None,
    sizer: TreeSizeCalculator | None = None,
) -> list[CacheEntry]:
    """Measure the global caches of the selected ecosystems.

    A cache is orphaned when no project of its ecosystem was discovered.

    Args:
        projects: Projects from the latest scan.
        locator: Locator used to ask toolchains where their caches live.
        ecosystems: Ecosystems to include. If None, all of them.
        sizer: Size calculator. If None, a default one is used.

    Returns:
        One CacheEntry per existing cache directory, largest first.
    """
    sizer = sizer or TreeSizeCalculator()
    live = {project.ecosystem for project in projects}
    entries: list[CacheEntry] = []

    for ecosystem in ecosystems or list(Ecosystem):
        strategy = STRATEGIES[ecosystem]
        for directory in await strategy.global_cache_dirs(locator):
            if not directory.is_dir():
                logger.debug("Cache directory does not exist: %s", directory)
                continue
            size = await asyncio.to_thread(sizer.size_or_zero, directory)
            entries.append(
                CacheEntry(
                    path=str(directory),
                    ecosystem=ecosystem,
                    size_bytes=size,
                    last_accessed=_last_accessed(directory),
                    orphaned=ecosystem not in live,
                )
            )

    entries.sort(key=lambda e: e.size_bytes, reverse=True)
    return entries
