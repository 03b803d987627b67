"""Scan progress events and results.

A scan session publishes a stream of ScanProgress events followed by
exactly one ScanFinished carrying the ScanReport.
"""

from dataclasses import dataclass, field
from enum import Enum

from cachectl.models.project import Ecosystem, Project


@dataclass(frozen=True, slots=True)
class RootFailure:
    """A scan root that could not be enumerated.

    Attributes:
        root: The scan root directory.
        ecosystem: Ecosystem being discovered when the failure occurred.
        message: Error description.
    """

    root: str
    ecosystem: Ecosystem
    message: str


@dataclass(frozen=True, slots=True)
class ScanReport:
    """Result of one discovery pass.

    Attributes:
        projects: Discovered and annotated projects.
        failures: Roots that failed to enumerate.
        cancelled: True if the scan was aborted before completion.
    """

    projects: tuple[Project, ...] = field(default=())
    failures: tuple[RootFailure, ...] = field(default=())
    cancelled: bool = False

    @property
    def total_cache_size(self) -> int:
        """Sum of cache sizes across all projects."""
        return sum(p.cache_size for p in self.projects)

    def by_ecosystem(self) -> dict[Ecosystem, list[Project]]:
        """Group projects by ecosystem, preserving order."""
        grouped: dict[Ecosystem, list[Project]] = {}
        for project in self.projects:
            grouped.setdefault(project.ecosystem, []).append(project)
        return grouped


@dataclass(frozen=True, slots=True)
class ScanProgress:
    """Incremental progress notification.

    Attributes:
        ecosystem: Ecosystem currently being processed.
        fraction: Overall completion between 0.0 and 1.0.
        message: Short description of the current step.
    """

    ecosystem: Ecosystem
    fraction: float
    message: str = ""

    def __post_init__(self) -> None:
        """Validate progress data after initialization."""
        if not (0.0 <= self.fraction <= 1.0):
            msg = f"Fraction must be between 0.0 and 1.0, got {self.fraction}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ScanFinished:
    """Terminal event of a scan session."""

    report: ScanReport


ScanEvent = ScanProgress | ScanFinished


class ValidationStatus(str, Enum):
    """Outcome of validating a candidate scan directory.

    Attributes:
        VALID: Readable and contains project markers.
        WARNING: Readable but no project markers were found.
        INVALID: Missing, not a directory, or unreadable.
    """

    VALID = "valid"
    WARNING = "warning"
    INVALID = "invalid"


@dataclass(frozen=True, slots=True)
class DirectoryValidation:
    """Validation verdict for a candidate scan directory."""

    status: ValidationStatus
    message: str

    @property
    def is_usable(self) -> bool:
        """Check if the directory can be scanned at all."""
        return self.status != ValidationStatus.INVALID
