"""
Per-specifier extraction cache.

Every specifier owns an ordered mapping of absolute path to cache state.
All reads and writes go through ``CacheStore`` so the state transitions
(unprocessed -> stories/docs/skipped/error -> unprocessed or removed) stay
in one place.

Classes:
    CacheStats: Counts per cache state
    CacheStore: The store itself
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from ...core.types import (
    UNPROCESSED,
    CacheEntry,
    DocsResult,
    ErrorResult,
    Skipped,
    Specifier,
    StoriesResult,
    Unprocessed,
)


@dataclass
class CacheStats:
    """Number of slots in each state."""

    unprocessed: int = 0
    stories: int = 0
    docs: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return self.unprocessed + self.stories + self.docs + self.skipped + self.errors


class CacheStore:
    """
    Mapping ``specifier -> {absolute path -> CacheEntry}``.

    Specifier order and, within a specifier, path insertion order are
    preserved; together they are the file import order.
    """

    def __init__(self, specifiers: list[Specifier]):
        self._specifiers = list(specifiers)
        self._caches: dict[Specifier, dict[str, CacheEntry]] = {}

    @property
    def specifiers(self) -> list[Specifier]:
        return list(self._specifiers)

    def install(self, specifier: Specifier, absolute_paths: list[str]) -> None:
        """Create the cache of ``specifier`` with every path unprocessed."""
        self._caches[specifier] = {path: UNPROCESSED for path in absolute_paths}

    def is_installed(self, specifier: Specifier) -> bool:
        return specifier in self._caches

    def _cache(self, specifier: Specifier) -> dict[str, CacheEntry]:
        try:
            return self._caches[specifier]
        except KeyError:
            raise KeyError(f"Unknown specifier: {specifier}") from None

    def get(self, specifier: Specifier, absolute_path: str) -> CacheEntry | None:
        """Cache state of a path, or None when the path is not tracked."""
        return self._cache(specifier).get(absolute_path)

    def set(self, specifier: Specifier, absolute_path: str, entry: CacheEntry) -> None:
        self._cache(specifier)[absolute_path] = entry

    def reset(self, specifier: Specifier, absolute_path: str) -> None:
        """Mark a path unprocessed, adding it when it is new."""
        self._cache(specifier)[absolute_path] = UNPROCESSED

    def remove(self, specifier: Specifier, absolute_path: str) -> None:
        self._cache(specifier).pop(absolute_path, None)

    def contains(self, specifier: Specifier, absolute_path: str) -> bool:
        return absolute_path in self._cache(specifier)

    def paths(self, specifier: Specifier) -> list[str]:
        return list(self._cache(specifier))

    def slots(self) -> Iterator[tuple[Specifier, str, CacheEntry]]:
        """Every ``(specifier, path, entry)`` in import order."""
        for specifier in self._specifiers:
            cache = self._caches.get(specifier)
            if cache is None:
                continue
            for path, entry in list(cache.items()):
                yield specifier, path, entry

    def file_names(self) -> list[str]:
        """Absolute paths of all specifiers, in import order."""
        return [path for _, path, _ in self.slots()]

    def reset_everywhere(self, absolute_path: str) -> bool:
        """Reset ``absolute_path`` in every cache where it holds a result.

        Returns True when at least one slot was reset.
        """
        reset = False
        for cache in self._caches.values():
            entry = cache.get(absolute_path)
            if entry is not None and not isinstance(entry, Unprocessed):
                cache[absolute_path] = UNPROCESSED
                reset = True
        return reset

    def get_stats(self) -> CacheStats:
        stats = CacheStats()
        for _, _, entry in self.slots():
            if isinstance(entry, Unprocessed):
                stats.unprocessed += 1
            elif isinstance(entry, StoriesResult):
                stats.stories += 1
            elif isinstance(entry, DocsResult):
                stats.docs += 1
            elif isinstance(entry, Skipped):
                stats.skipped += 1
            elif isinstance(entry, ErrorResult):
                stats.errors += 1
        return stats
