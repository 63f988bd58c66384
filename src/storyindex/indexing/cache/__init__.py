"""
Cache package for storyindex.

Public API:
    CacheStore: Per-specifier mapping of path to cache state
    CacheStats: Counts per cache state
    DependencyTracker: Docs -> stories dependency edges
"""

from .dependencies import DependencyTracker
from .store import CacheStats, CacheStore

__all__ = [
    "CacheStore",
    "CacheStats",
    "DependencyTracker",
]
