"""Cleanup request and outcome models.

A cleanup request names one of the supported operations; performing it
yields exactly one outcome: succeeded, failed, or skipped.
"""

from dataclasses import dataclass
from enum import Enum

from cachectl.models.project import Ecosystem, Project


class CleanupStatus(Enum):
    """Terminal state of a cleanup request."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class ProjectCacheCleanup:
    """Delete the ecosystem cache directories of one project."""

    project: Project


@dataclass(frozen=True, slots=True)
class GlobalCacheCleanup:
    """Purge the toolchain's global cache for an ecosystem."""

    ecosystem: Ecosystem


@dataclass(frozen=True, slots=True)
class DependencyPrune:
    """Run the toolchain's own prune/tidy command in a project."""

    project: Project


@dataclass(frozen=True, slots=True)
class DirectoryDeletion:
    """Delete an arbitrary, user-chosen directory."""

    path: str


CleanupRequest = ProjectCacheCleanup | GlobalCacheCleanup | DependencyPrune | DirectoryDeletion


@dataclass(frozen=True, slots=True)
class Succeeded:
    """The cleanup ran to completion.

    Attributes:
        message: What was done.
        bytes_reclaimed: Measured bytes removed; 0 when the toolchain does not report it.
    """

    message: str
    bytes_reclaimed: int = 0

    @property
    def status(self) -> CleanupStatus:
        return CleanupStatus.SUCCEEDED


@dataclass(frozen=True, slots=True)
class Failed:
    """The cleanup could not be completed.

    Attributes:
        message: Actionable description of the failure.
    """

    message: str

    @property
    def status(self) -> CleanupStatus:
        return CleanupStatus.FAILED


@dataclass(frozen=True, slots=True)
class Skipped:
    """There was nothing to do.

    Attributes:
        reason: Why the request was skipped.
    """

    reason: str

    @property
    def status(self) -> CleanupStatus:
        return CleanupStatus.SKIPPED


CleanupOutcome = Succeeded | Failed | Skipped
