"""
Plugin contracts for the indexing system.

The indexer does not parse any file format itself. Stories files are handed
to a ``StoryExtractor`` and docs files to a ``DocsAnalyzer``; both are
supplied through ``IndexerConfig``.

Classes:
    ExtractionContext: Helpers passed to an extractor
    ExtractedStory: One story as described by an extractor
    CsfDescription: Everything an extractor found in one stories file
    StoryExtractor: Abstract base class for stories file extractors
    DocsAnalysis: Result of analyzing a docs file
    DocsAnalyzer: Protocol for docs file analyzers
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(slots=True)
class ExtractionContext:
    """Helpers available to an extractor while it processes one file."""

    import_path: str
    # user title (or None) -> final title
    make_title: Callable[[str | None], str]


@dataclass(slots=True)
class ExtractedStory:
    name: str
    tags: list[str] | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    id: str | None = None  # derived from (title, name) when not given

    @property
    def docs_only(self) -> bool:
        return bool(self.parameters.get("docsOnly"))


@dataclass(slots=True)
class CsfDescription:
    title: str
    stories: list[ExtractedStory] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


class StoryExtractor(ABC):
    """
    Abstract base class for stories file extractors.

    The first registered extractor whose ``match`` accepts a path is used
    for it.
    """

    pattern: re.Pattern[str] | str = r"\.stories\.[^.]+$"

    def match(self, absolute_path: str) -> bool:
        return re.search(self.pattern, absolute_path) is not None

    @abstractmethod
    async def extract(self, absolute_path: str, context: ExtractionContext) -> CsfDescription:
        """
        Describe the stories in one file.

        Args:
            absolute_path: File to read
            context: Title helper and import path of the file

        Returns:
            The file title, its component tags and its stories
        """


@dataclass(slots=True)
class DocsAnalysis:
    title: str | None = None
    of: str | None = None
    name: str | None = None
    is_template: bool = False
    imports: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


class DocsAnalyzer(Protocol):
    """Pure function over the raw content of a docs file."""

    def __call__(self, content: str) -> DocsAnalysis: ...
