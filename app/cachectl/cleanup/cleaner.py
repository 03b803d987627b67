"""Cache cleanup.

Performs one cleanup request at a time and reports exactly one outcome:
Succeeded, Failed, or Skipped. Cleanup never raises for expected
failures; missing tools, permission problems, timeouts and filesystem
errors all become Failed outcomes with an actionable message.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from cachectl.cleanup.protected import is_protected_path
from cachectl.core.sizing import TreeSizeCalculator, find_named_directories, is_regular_directory
from cachectl.core.tools import ToolLocator
from cachectl.ecosystems import STRATEGIES
from cachectl.models.cleanup import (
    CleanupOutcome,
    CleanupRequest,
    DependencyPrune,
    DirectoryDeletion,
    Failed,
    GlobalCacheCleanup,
    ProjectCacheCleanup,
    Skipped,
    Succeeded,
)
from cachectl.models.project import Ecosystem, Project
from cachectl.utils.formatting import format_size
from cachectl.utils.shell import (
    CommandFailedError,
    CommandPermissionError,
    CommandTimeoutError,
    ProcessRunner,
    ToolNotFoundError,
)

logger = logging.getLogger(__name__)

# Wall-clock limit for purge and prune commands
PURGE_TIMEOUT: float = 300.0


def _plural(count: int) -> str:
    return "directory" if count == 1 else "directories"


def not_installed_message(tool: str) -> str:
    """Build the message for a toolchain that cannot be located."""
    return (
        f"{tool} is not installed or not on PATH; install it or run "
        f"`cachectl tools set {tool} /path/to/{tool}`"
    )


class CacheCleaner:
    """Executes cleanup requests.

    Deletions performed by one cleaner never overlap: each request takes
    the cleaner's lock before touching the filesystem or running a
    toolchain command.

    Args:
        locator: Locator for toolchain executables.
        runner: Process runner. If None, the locator's runner is used.
        sizer: Size calculator used to measure reclaimed space.
        dry_run: If True, report what would happen without changing anything.

    Example:
        >>> cleaner = CacheCleaner(ToolLocator())
        >>> outcome = await cleaner.perform(ProjectCacheCleanup(project))
        >>> outcome.status
        <CleanupStatus.SUCCEEDED: 'succeeded'>
    """

    def __init__(
        self,
        locator: ToolLocator,
        runner: ProcessRunner | None = None,
        sizer: TreeSizeCalculator | None = None,
        *,
        dry_run: bool = False,
    ) -> None:
        self._locator = locator
        self._runner = runner or locator.runner
        self._sizer = sizer or TreeSizeCalculator()
        self._dry_run = dry_run
        self._lock = asyncio.Lock()

    @property
    def dry_run(self) -> bool:
        """Check if the cleaner only simulates cleanups."""
        return self._dry_run

    async def perform(self, request: CleanupRequest) -> CleanupOutcome:
        """Perform a cleanup request.

        Args:
            request: The cleanup to perform.

        Returns:
            The outcome of the request.

        Raises:
            TypeError: If the request type is unknown.
        """
        if isinstance(request, ProjectCacheCleanup):
            outcome = await self._clean_project(request.project)
        elif isinstance(request, GlobalCacheCleanup):
            outcome = await self._purge_global(request.ecosystem)
        elif isinstance(request, DependencyPrune):
            outcome = await self._prune(request.project)
        elif isinstance(request, DirectoryDeletion):
            outcome = await self._delete_directory(request.path)
        else:
            msg = f"Unknown cleanup request: {type(request).__name__}"
            raise TypeError(msg)

        logger.info("%s -> %s", type(request).__name__, outcome)
        return outcome

    # Project caches

    async def _clean_project(self, project: Project) -> CleanupOutcome:
        root = Path(project.path)
        if not is_regular_directory(root):
            return Failed(f"Project directory does not exist: {root}")

        async with self._lock:
            return await asyncio.to_thread(self._clean_project_sync, project, root)

    def _clean_project_sync(self, project: Project, root: Path) -> CleanupOutcome:
        strategy = STRATEGIES[project.ecosystem]
        reclaimed = 0
        count = 0

        try:
            for directory in strategy.cache_paths(root):
                reclaimed += self._remove(directory)
                count += 1
            # Matches are not descended into, so nested caches go with their parent
            for directory in find_named_directories(root, strategy.recursive_cache_names):
                reclaimed += self._remove(directory)
                count += 1
        except OSError as e:
            logger.warning("Cleanup of %s failed: %s", root, e)
            return Failed(f"Cannot clean {project.name}: {e.strerror or e}")

        if count == 0:
            return Skipped(f"No {project.ecosystem.display_name} caches in {root}")

        verb = "Would delete" if self._dry_run else "Deleted"
        return Succeeded(
            f"{verb} {count} cache {_plural(count)} in {project.name} ({format_size(reclaimed)})",
            reclaimed,
        )

    def _remove(self, directory: Path) -> int:
        """Measure a directory, then delete it unless in dry-run mode.

        Raises:
            OSError: If the directory cannot be measured or deleted.
        """
        size = self._sizer.size(directory)
        if self._dry_run:
            logger.info("Dry-run: would delete %s", directory)
        else:
            logger.info("Deleting %s (%d bytes)", directory, size)
            shutil.rmtree(directory)
        return size

    # Toolchain commands

    async def _purge_global(self, ecosystem: Ecosystem) -> CleanupOutcome:
        strategy = STRATEGIES[ecosystem]
        if strategy.global_purge_args is None:
            return Skipped(f"{ecosystem.display_name} has no global cache purge command")
        return await self._run_tool(ecosystem, strategy.global_purge_args, cwd=None)

    async def _prune(self, project: Project) -> CleanupOutcome:
        strategy = STRATEGIES[project.ecosystem]
        if strategy.prune_args is None:
            return Skipped(f"{project.ecosystem.display_name} has no prune command")
        if not is_regular_directory(Path(project.path)):
            return Failed(f"Project directory does not exist: {project.path}")
        return await self._run_tool(project.ecosystem, strategy.prune_args, cwd=project.path)

    async def _run_tool(
        self,
        ecosystem: Ecosystem,
        args: tuple[str, ...],
        cwd: str | None,
    ) -> CleanupOutcome:
        tool = ecosystem.tool
        display = " ".join([tool, *args])
        location = f" in {cwd}" if cwd else ""

        if self._dry_run:
            return Skipped(f"Dry run: would run `{display}`{location}")

        path = await self._locator.locate(tool)
        if path is None:
            return Failed(not_installed_message(tool))

        async with self._lock:
            try:
                await self._runner.execute(
                    path,
                    args,
                    cwd=cwd,
                    env=self._locator.environment,
                    timeout=PURGE_TIMEOUT,
                )
            except ToolNotFoundError:
                return Failed(not_installed_message(tool))
            except CommandTimeoutError as e:
                return Failed(f"`{display}` did not finish within {e.timeout:g}s")
            except CommandPermissionError as e:
                detail = e.result.stderr.strip().splitlines()
                reason = detail[-1] if detail else "permission denied"
                return Failed(
                    f"`{display}` was denied access ({reason}). Check that you own the "
                    f"{ecosystem.display_name} cache directories; cachectl never runs "
                    "commands with elevated privileges."
                )
            except CommandFailedError as e:
                return Failed(str(e))

        return Succeeded(f"Ran `{display}`{location}", 0)

    # Arbitrary directories

    async def _delete_directory(self, raw_path: str) -> CleanupOutcome:
        path = Path(raw_path).expanduser()

        if is_protected_path(path):
            logger.warning("Refusing to delete protected path %s", path)
            return Failed(f"Refusing to delete protected path: {path}")
        if path.is_symlink():
            return Failed(f"Refusing to delete symbolic link: {path}")
        if not path.exists():
            return Failed(f"Path does not exist: {path}")
        if not path.is_dir():
            return Failed(f"Not a directory: {path}")

        async with self._lock:
            try:
                reclaimed = await asyncio.to_thread(self._remove, path)
            except OSError as e:
                logger.warning("Deletion of %s failed: %s", path, e)
                return Failed(f"Cannot delete {path}: {e.strerror or e}")

        verb = "Would delete" if self._dry_run else "Deleted"
        return Succeeded(f"{verb} {path} ({format_size(reclaimed)})", reclaimed)
