"""
Story index generator.

``StoryIndexGenerator`` builds the index for a list of specifiers and keeps
it up to date incrementally:

    1. ``initialize`` resolves every specifier to its files (concurrently)
       and extracts them.
    2. ``get_index`` extracts whatever is unprocessed, resolves duplicate
       identifiers, sorts the entries and memoizes the result (or the
       error).
    3. ``invalidate`` is called for every created, changed or deleted file.
       It resets the file and the docs files depending on it, and clears
       the memoized result.

Example:
    >>> generator = StoryIndexGenerator(specifiers, config)
    >>> await generator.initialize()
    >>> index = await generator.get_index()
    >>> generator.invalidate(specifiers[0], "./src/Button.stories.py", removed=False)
    >>> index = await generator.get_index()  # only Button and its docs re-extracted
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any

from ..core.config import IndexerConfig
from ..core.types import (
    DocsResult,
    ErrorResult,
    IndexEntry,
    Skipped,
    Specifier,
    StoriesResult,
    StoryIndex,
)
from ..utils.error_handling import (
    AggregateDuplicateConflictError,
    AggregateExtractionError,
    IndexingError,
)
from ..utils.logging_config import get_logger
from ..utils.naming import slash, to_import_path
from .cache import CacheStats, CacheStore, DependencyTracker
from .compat import to_v2_compat
from .duplicates import DuplicateResolver
from .extraction import ExtractedItem, ExtractionOrchestrator, Updater
from .paths import resolve_all
from .sorting import PreviewSortSource, StorySortParameter, sort_entries

logger = get_logger()


@dataclass
class IndexMemo:
    """Last index or last error; never both."""

    index: StoryIndex | None = None
    error: Exception | None = None

    def set_index(self, index: StoryIndex) -> None:
        self.index = index
        self.error = None

    def set_error(self, error: Exception) -> None:
        self.error = error
        self.index = None

    def reset(self) -> None:
        self.index = None
        self.error = None


class StoryIndexGenerator:
    """
    Incremental index of the stories and docs files matched by specifiers.
    """

    def __init__(self, specifiers: list[Specifier], config: IndexerConfig):
        config.validate()
        self.specifiers = list(specifiers)
        self.config = config
        self.working_dir = config.resolve_working_dir()

        self.store = CacheStore(self.specifiers)
        self.tracker = DependencyTracker(self.store)
        self.extraction = ExtractionOrchestrator(config, self.store, self.tracker)
        self.duplicates = DuplicateResolver(config.docs)
        self.sort_source = PreviewSortSource(config.resolve_config_dir())

        self._memo = IndexMemo()

    async def initialize(self) -> None:
        """Find every file matched by the specifiers and extract them."""
        resolved = await resolve_all(
            self.specifiers, self.working_dir, self.config.skip_extensions
        )
        # Installed after gathering so cache order follows specifier order
        for specifier, paths in zip(self.specifiers, resolved):
            self.store.install(specifier, paths)
            logger.debug(f"Specifier {specifier.directory}/{specifier.files}: {len(paths)} files")

        await self.ensure_extracted()

    async def update_extracted(self, updater: Updater, overwrite: bool = False) -> None:
        await self.extraction.update_extracted(updater, overwrite)

    async def ensure_extracted(self) -> list[ExtractedItem]:
        return await self.extraction.ensure_extracted()

    async def extract_stories(self, specifier: Specifier, absolute_path: str) -> StoriesResult:
        return await self.extraction.extract_stories(specifier, absolute_path)

    async def extract_docs(
        self, specifier: Specifier, absolute_path: str
    ) -> DocsResult | Skipped:
        return await self.extraction.extract_docs(specifier, absolute_path)

    def find_dependencies(self, absolute_imports: list[str]) -> list[StoriesResult]:
        return self.tracker.find_dependencies(absolute_imports)

    def choose_duplicate(self, first: IndexEntry, second: IndexEntry) -> IndexEntry:
        return self.duplicates.choose_duplicate(first, second)

    def story_file_names(self) -> list[str]:
        """Import paths of every tracked file, in file import order."""
        return [to_import_path(path, str(self.working_dir)) for path in self.store.file_names()]

    def get_story_sort_parameter(self) -> StorySortParameter | None:
        if self.config.story_sort is not None:
            return self.config.story_sort
        return self.sort_source.load()

    def sort_stories(self, entries: dict[str, IndexEntry]) -> dict[str, IndexEntry]:
        sortable = list(entries.values())

        # Legacy mode keeps insertion order
        if self.config.story_store_v7:
            sortable = sort_entries(
                sortable, self.get_story_sort_parameter(), self.story_file_names()
            )

        return {entry.id: entry for entry in sortable}

    def _resolve_duplicates(self, entries: list[IndexEntry]) -> dict[str, IndexEntry]:
        duplicate_errors: list[IndexingError] = []
        index_entries: dict[str, IndexEntry] = {}
        for entry in entries:
            try:
                existing = index_entries.get(entry.id)
                if existing is not None:
                    index_entries[entry.id] = self.choose_duplicate(existing, entry)
                else:
                    index_entries[entry.id] = entry
            except IndexingError as e:
                duplicate_errors.append(e)

        if duplicate_errors:
            raise AggregateDuplicateConflictError(duplicate_errors)
        return index_entries

    async def get_index(self) -> StoryIndex:
        """
        The current index.

        Memoized until the next ``invalidate``. A failure is memoized too
        and raised again on every call until then.

        Raises:
            AggregateExtractionError: At least one file failed to extract
            AggregateDuplicateConflictError: Irreconcilable duplicate ids
        """
        if self._memo.index is not None:
            return self._memo.index
        if self._memo.error is not None:
            raise self._memo.error

        start = time.time()
        try:
            items = await self.ensure_extracted()

            error_entries = [item.error for item in items if isinstance(item, ErrorResult)]
            if error_entries:
                raise AggregateExtractionError(error_entries)

            entries = [item for item in items if not isinstance(item, ErrorResult)]
            index_entries = self._resolve_duplicates(entries)
            sorted_entries: dict[str, Any] = self.sort_stories(index_entries)

            if self.config.stories_v2_compatibility:
                sorted_entries = to_v2_compat(sorted_entries)

            index = StoryIndex(entries=sorted_entries)
        except Exception as e:
            self._memo.set_error(e)
            logger.warning(f"{e}")
            raise

        self._memo.set_index(index)
        logger.log_index_built(
            len(index.entries), len(self.store.file_names()), (time.time() - start) * 1000
        )
        return index

    def absolute_path(self, import_path: str) -> str:
        return slash(os.path.normpath(os.path.join(self.working_dir, import_path)))

    def invalidate(self, specifier: Specifier, import_path: str, removed: bool) -> None:
        """
        Forget what is known about one file.

        The file's docs dependents are reset in every cache. A removed file
        loses its slot (and a removed docs file its dependency edges); any
        other file is reset to unprocessed. The memoized index and error are
        cleared either way.
        """
        absolute_path = self.absolute_path(import_path)
        cache_entry = self.store.get(specifier, absolute_path)

        if isinstance(cache_entry, StoriesResult):
            # A dependent may live in any specifier's cache
            for dependent in list(cache_entry.dependents):
                if self.store.reset_everywhere(dependent):
                    logger.debug(f"Invalidated docs dependent {dependent}")
        else:
            # Edges are recorded before a docs entry is built, so a failed
            # docs file may hold them too
            self.tracker.remove_dependent(absolute_path)

        if removed:
            self.store.remove(specifier, absolute_path)
        else:
            self.store.reset(specifier, absolute_path)

        self._memo.reset()

    def get_stats(self) -> dict[str, Any]:
        stats: CacheStats = self.store.get_stats()
        return {
            "specifiers": len(self.specifiers),
            "files": stats.total,
            "unprocessed": stats.unprocessed,
            "stories": stats.stories,
            "docs": stats.docs,
            "skipped": stats.skipped,
            "errors": stats.errors,
            "memoized_index": self._memo.index is not None,
            "memoized_error": self._memo.error is not None,
        }
