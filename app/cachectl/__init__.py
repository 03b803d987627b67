"""cachectl - Find development projects and reclaim their dependency caches."""

__version__ = "0.3.0"
