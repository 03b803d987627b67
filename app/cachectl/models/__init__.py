"""Data models for cachectl.

This module exports all data models used throughout the application.
"""

from cachectl.models.cleanup import (
    CleanupOutcome,
    CleanupRequest,
    CleanupStatus,
    DependencyPrune,
    DirectoryDeletion,
    Failed,
    GlobalCacheCleanup,
    ProjectCacheCleanup,
    Skipped,
    Succeeded,
)
from cachectl.models.project import CacheEntry, Dependency, Ecosystem, Project
from cachectl.models.scan import (
    DirectoryValidation,
    RootFailure,
    ScanEvent,
    ScanFinished,
    ScanProgress,
    ScanReport,
    ValidationStatus,
)

__all__ = [
    "CacheEntry",
    "CleanupOutcome",
    "CleanupRequest",
    "CleanupStatus",
    "Dependency",
    "DependencyPrune",
    "DirectoryDeletion",
    "DirectoryValidation",
    "Ecosystem",
    "Failed",
    "GlobalCacheCleanup",
    "Project",
    "ProjectCacheCleanup",
    "RootFailure",
    "ScanEvent",
    "ScanFinished",
    "ScanProgress",
    "ScanReport",
    "Skipped",
    "Succeeded",
    "ValidationStatus",
]
