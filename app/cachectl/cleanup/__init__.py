"""Cache cleanup and deletion safety checks."""

from cachectl.cleanup.cleaner import PURGE_TIMEOUT, CacheCleaner
from cachectl.cleanup.protected import is_protected_path

__all__ = [
    "PURGE_TIMEOUT",
    "CacheCleaner",
    "is_protected_path",
]
