"""Scan sessions.

A ScanSession runs one discovery pass over the configured scan roots:
it finds projects per ecosystem, annotates them with dependencies and
cache sizes, and publishes progress as an async stream of events that
ends with a single ScanFinished.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import replace
from pathlib import Path

from cachectl.core.discovery import ProjectDiscoverer
from cachectl.core.inspector import DependencyInspector
from cachectl.core.settings import ScanDirectorySet
from cachectl.core.sizing import (
    EnumerationFailedError,
    TreeSizeCalculator,
    find_named_directories,
)
from cachectl.core.tools import ToolLocator
from cachectl.ecosystems import STRATEGIES
from cachectl.models.project import Ecosystem, Project
from cachectl.models.scan import (
    RootFailure,
    ScanEvent,
    ScanFinished,
    ScanProgress,
    ScanReport,
)

logger = logging.getLogger(__name__)

# Maximum concurrent root walks and project annotations
DEFAULT_CONCURRENCY: int = 8


def project_cache_size(project: Project, sizer: TreeSizeCalculator) -> int:
    """Measure every cache directory belonging to a project.

    Args:
        project: Project to measure.
        sizer: Size calculator.

    Returns:
        Combined size of the root-level cache directories and all
        recursive cache directories (e.g. ``__pycache__``).
    """
    strategy = STRATEGIES[project.ecosystem]
    root = Path(project.path)
    total = sum(sizer.size_or_zero(d) for d in strategy.cache_paths(root))
    total += sum(
        sizer.size_or_zero(d) for d in find_named_directories(root, strategy.recursive_cache_names)
    )
    return total


class ScanSession:
    """One cancellable discovery pass.

    The scan roots are locked for the whole pass; adding or removing a
    root while :meth:`events` is running raises ScanInProgressError.

    Args:
        roots: Scan roots to walk.
        locator: Toolchain locator used for dependency inspection.
        ecosystems: Ecosystems to discover. If None, all of them.
        concurrency: Maximum concurrent walks and annotations.
        inspect_dependencies: If False, projects are only sized.
        sizer: Size calculator. If None, a default one is used.

    Example:
        >>> session = ScanSession(roots, ToolLocator())
        >>> async for event in session.events():
        ...     if isinstance(event, ScanFinished):
        ...         print(len(event.report.projects))
    """

    def __init__(
        self,
        roots: ScanDirectorySet,
        locator: ToolLocator,
        ecosystems: Iterable[Ecosystem] | None = None,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        inspect_dependencies: bool = True,
        sizer: TreeSizeCalculator | None = None,
    ) -> None:
        if concurrency < 1:
            msg = f"Concurrency must be at least 1, got {concurrency}"
            raise ValueError(msg)
        self._roots = roots
        self._locator = locator
        self._ecosystems = list(ecosystems) if ecosystems is not None else list(Ecosystem)
        self._concurrency = concurrency
        self._inspect = inspect_dependencies
        self._sizer = sizer or TreeSizeCalculator()
        self._inspector = DependencyInspector(locator)
        self._cancel_event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Request cancellation.

        No new walk or toolchain call starts afterwards; projects already
        annotated are kept in the report.
        """
        if not self._cancel_event.is_set():
            logger.info("Scan cancellation requested")
        self._cancel_event.set()

    async def run(self) -> ScanReport:
        """Run the scan to completion and return only the report."""
        report = ScanReport()
        async for event in self.events():
            if isinstance(event, ScanFinished):
                report = event.report
        return report

    async def events(self) -> AsyncIterator[ScanEvent]:
        """Run the scan, yielding progress events and a final ScanFinished."""
        semaphore = asyncio.Semaphore(self._concurrency)
        projects: list[Project] = []
        failures: list[RootFailure] = []
        total = len(self._ecosystems) or 1

        with self._roots.scanning() as roots:
            logger.info(
                "Scanning %d root(s) for %d ecosystem(s)", len(roots), len(self._ecosystems)
            )

            for index, ecosystem in enumerate(self._ecosystems):
                if self.cancelled:
                    break

                yield ScanProgress(
                    ecosystem,
                    index / total,
                    f"Discovering {ecosystem.display_name} projects",
                )
                found, root_failures = await self._discover(roots, ecosystem, semaphore)
                failures.extend(root_failures)

                async for done, annotated in self._annotate_all(found, semaphore):
                    projects.extend(annotated)
                    fraction = (index + done / max(len(found), 1)) / total
                    yield ScanProgress(
                        ecosystem,
                        min(fraction, 1.0),
                        f"Inspected {done}/{len(found)} {ecosystem.display_name} projects",
                    )

        report = ScanReport(
            projects=tuple(projects),
            failures=tuple(failures),
            cancelled=self.cancelled,
        )
        logger.info(
            "Scan finished: %d project(s), %d failure(s)%s",
            len(report.projects),
            len(report.failures),
            " (cancelled)" if report.cancelled else "",
        )
        yield ScanFinished(report)

    async def _discover(
        self,
        roots: tuple[str, ...],
        ecosystem: Ecosystem,
        semaphore: asyncio.Semaphore,
    ) -> tuple[list[Project], list[RootFailure]]:
        """Walk every root in a worker thread, deduplicating by path."""

        async def walk(root: str) -> list[Project] | RootFailure:
            async with semaphore:
                if self.cancelled:
                    return []
                discoverer = ProjectDiscoverer(self._sizer)
                try:
                    return await asyncio.to_thread(
                        discoverer.discover_root,
                        root,
                        ecosystem,
                        self._cancel_event.is_set,
                    )
                except EnumerationFailedError as e:
                    logger.warning("Cannot scan %s: %s", root, e)
                    return RootFailure(root=root, ecosystem=ecosystem, message=str(e))

        results = await asyncio.gather(*(walk(root) for root in roots))

        found: list[Project] = []
        failures: list[RootFailure] = []
        seen: set[str] = set()
        for result in results:
            if isinstance(result, RootFailure):
                failures.append(result)
                continue
            for project in result:
                if project.path not in seen:
                    seen.add(project.path)
                    found.append(project)
        return found, failures

    async def _annotate_all(
        self,
        found: list[Project],
        semaphore: asyncio.Semaphore,
    ) -> AsyncIterator[tuple[int, list[Project]]]:
        """Annotate projects concurrently.

        Yields (completed count, newly annotated projects in discovery
        order) as annotations finish.
        """
        if not found:
            return

        tasks = [asyncio.create_task(self._annotate(p, semaphore)) for p in found]
        emitted = 0
        done = 0
        try:
            for next_done in asyncio.as_completed(tasks):
                await next_done
                done += 1
                # Emit in discovery order
                batch: list[Project] = []
                while emitted < len(tasks) and tasks[emitted].done():
                    project = tasks[emitted].result()
                    if project is not None:
                        batch.append(project)
                    emitted += 1
                yield done, batch
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

    async def _annotate(self, project: Project, semaphore: asyncio.Semaphore) -> Project | None:
        """Attach dependencies and cache size, or None if cancelled first."""
        async with semaphore:
            if self.cancelled:
                return None
            dependencies = await self._inspector.inspect(project) if self._inspect else []
            cache_size = await asyncio.to_thread(project_cache_size, project, self._sizer)
            return replace(project, dependencies=tuple(dependencies), cache_size=cache_size)
