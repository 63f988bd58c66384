"""
Two-pass extraction over the cache store.

Stories files are extracted first, docs files second: a docs file may point
at a stories file (``of``) and reads that file's already extracted entries
straight out of the cache, so the docs sweep only starts once the stories
sweep has fully settled.

Classes:
    ExtractionOrchestrator: Runs updaters over cache slots and implements
        stories and docs extraction

Features:
    - Every slot of a sweep is processed as its own asyncio task
    - A failing file becomes an error slot; sibling files are unaffected
    - Docs files record themselves as dependents of the stories they import
"""

from __future__ import annotations

import asyncio
import os
import traceback
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path
from typing import Union

from ..core.config import IndexerConfig
from ..core.types import (
    AUTODOCS_TAG,
    DOCS_TAG,
    STORIES_MDX_TAG,
    STORY_TAG,
    CacheEntry,
    DocsEntry,
    DocsResult,
    EntryType,
    ErrorResult,
    IndexEntry,
    Skipped,
    Specifier,
    StoriesResult,
    StoryEntry,
    Unprocessed,
)
from ..utils.error_handling import (
    IndexingError,
    MissingReferenceError,
    NoMatchingExtractorError,
)
from ..utils.logging_config import get_logger
from ..utils.naming import (
    auto_name,
    normalize_story_path,
    slash,
    to_id,
    user_or_auto_title,
)
from .base import ExtractionContext, StoryExtractor
from .cache import CacheStore, DependencyTracker

logger = get_logger()

Updater = Callable[[Specifier, str, CacheEntry], Awaitable[CacheEntry]]
ExtractedItem = Union[IndexEntry, ErrorResult]


def _merge_tags(*groups: Iterable[str]) -> list[str]:
    """Concatenate tag groups, keeping the first occurrence of each tag."""
    merged: list[str] = []
    for group in groups:
        for tag in group:
            if tag not in merged:
                merged.append(tag)
    return merged


class ExtractionOrchestrator:
    """
    Fills the cache store by running extractors over unprocessed slots.
    """

    def __init__(self, config: IndexerConfig, store: CacheStore, tracker: DependencyTracker):
        self.config = config
        self.store = store
        self.tracker = tracker
        self.working_dir = config.resolve_working_dir()

    def relative_path(self, absolute_path: str) -> str:
        return os.path.relpath(absolute_path, self.working_dir)

    def error_path(self, absolute_path: str) -> str:
        return f".{os.sep}{self.relative_path(absolute_path)}"

    def make_absolute(self, other_import: str, normalized_path: str) -> str:
        """Resolve a relative import of the file at ``normalized_path``."""
        if not other_import.startswith("."):
            return other_import
        joined = os.path.join(self.working_dir, os.path.dirname(normalized_path), other_import)
        return slash(os.path.normpath(joined))

    async def update_extracted(self, updater: Updater, overwrite: bool = False) -> None:
        """
        Replace every unprocessed slot (every slot with ``overwrite``) with
        the result of ``updater``.

        All slots are updated concurrently and the call returns once all of
        them have settled. An exception raised by the updater is stored in
        the slot as an ``ErrorResult``.
        """
        tasks = [
            self._update_slot(updater, specifier, absolute_path, entry)
            for specifier, absolute_path, entry in self.store.slots()
            if overwrite or isinstance(entry, Unprocessed)
        ]
        await asyncio.gather(*tasks)

    async def _update_slot(
        self, updater: Updater, specifier: Specifier, absolute_path: str, entry: CacheEntry
    ) -> None:
        try:
            result = await updater(specifier, absolute_path, entry)
        except Exception as e:
            error = self._to_indexing_error(e, absolute_path)
            logger.log_extraction_error(error.path_summary(), error.message)
            result = ErrorResult(error)
        self.store.set(specifier, absolute_path, result)

    def _to_indexing_error(self, exc: Exception, absolute_path: str) -> IndexingError:
        stack = "".join(traceback.format_exception(exc))
        if isinstance(exc, IndexingError):
            if not exc.import_paths:
                exc.import_paths = [self.error_path(absolute_path)]
            if exc.stack is None:
                exc.stack = stack
            return exc
        return IndexingError(str(exc), [self.error_path(absolute_path)], stack)

    async def ensure_extracted(self) -> list[ExtractedItem]:
        """
        Extract every unprocessed slot, stories files first.

        Returns:
            All entries of all caches in import order, plus the error slots
        """

        async def extract_primary(
            specifier: Specifier, absolute_path: str, entry: CacheEntry
        ) -> CacheEntry:
            if self.config.is_docs_file(absolute_path):
                return entry
            return await self.extract_stories(specifier, absolute_path)

        async def extract_secondary(
            specifier: Specifier, absolute_path: str, entry: CacheEntry
        ) -> CacheEntry:
            return await self.extract_docs(specifier, absolute_path)

        await self.update_extracted(extract_primary)
        await self.update_extracted(extract_secondary)

        return self.collect()

    def collect(self) -> list[ExtractedItem]:
        """Flatten the store into entries and error slots."""
        items: list[ExtractedItem] = []
        for _, _, entry in self.store.slots():
            if isinstance(entry, StoriesResult):
                items.extend(entry.entries)
            elif isinstance(entry, DocsResult):
                items.append(entry.entry)
            elif isinstance(entry, ErrorResult):
                items.append(entry)
        return items

    def find_extractor(self, absolute_path: str) -> StoryExtractor:
        for extractor in self.config.extractors:
            if extractor.match(absolute_path):
                return extractor
        raise NoMatchingExtractorError(absolute_path)

    async def extract_stories(self, specifier: Specifier, absolute_path: str) -> StoriesResult:
        """
        Index one stories file.

        Stories flagged ``docsOnly`` are left out. A docs entry pointing at
        the file is put in front of the stories when the file came from a
        stories-mdx file or autodocs applies to it.
        """
        import_path = slash(normalize_story_path(self.relative_path(absolute_path)))

        def make_title(user_title: str | None = None) -> str:
            title = user_or_auto_title(import_path, specifier, user_title)
            if title is None:
                if user_title:
                    return user_title
                raise IndexingError(f"Unable to derive a title for {import_path}")
            return title

        extractor = self.find_extractor(absolute_path)
        csf = await extractor.extract(absolute_path, ExtractionContext(import_path, make_title))

        component_tags = _merge_tags(specifier.tags, csf.tags or [])
        entries: list[IndexEntry] = []
        for story in csf.stories:
            if story.docs_only:
                continue
            if story.tags is not None:
                tags = [*_merge_tags(specifier.tags, story.tags), STORY_TAG]
            else:
                tags = [*component_tags, STORY_TAG]
            entries.append(
                StoryEntry(
                    id=story.id or to_id(csf.title, story.name),
                    title=csf.title,
                    name=story.name,
                    import_path=import_path,
                    tags=tuple(tags),
                )
            )

        if csf.stories:
            autodocs = self.config.docs.autodocs
            component_autodocs = AUTODOCS_TAG in component_tags
            autodocs_opted_in = autodocs is True or (autodocs == "tag" and component_autodocs)
            if STORIES_MDX_TAG in component_tags or autodocs_opted_in:
                name = self.config.docs.default_name
                tags = [*component_tags, DOCS_TAG]
                if autodocs_opted_in and not component_autodocs:
                    tags.append(AUTODOCS_TAG)
                entries.insert(
                    0,
                    DocsEntry(
                        id=to_id(csf.title, name),
                        title=csf.title,
                        name=name,
                        import_path=import_path,
                        tags=tuple(tags),
                        stories_imports=(),
                    ),
                )

        return StoriesResult(entries=entries, dependents=[])

    async def extract_docs(self, specifier: Specifier, absolute_path: str) -> DocsResult | Skipped:
        """
        Index one docs file.

        The analyzer reports the file's imports; the stories files among
        them become dependencies, and an ``of`` reference supplies the
        title. Templates produce no entry.

        Raises:
            MissingReferenceError: ``of`` does not point at an indexed
                stories file
        """
        relative_path = self.relative_path(absolute_path)
        if not self.config.story_store_v7:
            raise IndexingError("You cannot use docs files without using `story_store_v7`.")
        analyzer = self.config.docs_analyzer
        if analyzer is None:
            raise IndexingError(f"No docs analyzer configured to index {relative_path}")

        normalized_path = normalize_story_path(relative_path)
        import_path = slash(normalized_path)

        content = await asyncio.to_thread(Path(absolute_path).read_text, encoding="utf-8")
        result = analyzer(content)

        if result.is_template:
            return Skipped()

        absolute_imports = [self.make_absolute(p, normalized_path) for p in result.imports]
        dependencies = self.tracker.find_dependencies(absolute_imports)

        csf_entry: IndexEntry | None = None
        if result.of:
            absolute_of = os.path.normpath(self.make_absolute(result.of, normalized_path))
            for dependency in dependencies:
                first = next(
                    (e for e in dependency.entries if e.type is not EntryType.DOCS), None
                )
                if first is None:
                    continue
                first_path = os.path.normpath(os.path.join(self.working_dir, first.import_path))
                if first_path.startswith(absolute_of):
                    csf_entry = first

            if csf_entry is None:
                raise MissingReferenceError(result.of, self.error_path(absolute_path))

        self.tracker.record_dependents(dependencies, absolute_path)

        default_name = self.config.docs.default_name
        title = (
            csf_entry.title
            if csf_entry
            else user_or_auto_title(import_path, specifier, result.title)
        )
        if title is None:
            raise IndexingError(f"Unable to derive a title for {import_path}")
        if result.name:
            name = result.name
        elif csf_entry:
            name = auto_name(import_path, csf_entry.import_path, default_name)
        else:
            name = default_name

        return DocsResult(
            DocsEntry(
                id=to_id(title, name),
                title=title,
                name=name,
                import_path=import_path,
                tags=(*result.tags, DOCS_TAG),
                stories_imports=tuple(
                    dependency.entries[0].import_path
                    for dependency in dependencies
                    if dependency.entries
                ),
            )
        )
