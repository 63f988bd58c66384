"""
Core types and configuration for storyindex.

Modules:
    types: Specifiers, entries, cache states and the index
    config: IndexerConfig and DocsOptions
"""

from .config import DocsOptions, IndexerConfig, load_specifiers
from .types import (
    DocsEntry,
    EntryType,
    IndexEntry,
    Specifier,
    StoryEntry,
    StoryIndex,
)

__all__ = [
    "DocsOptions",
    "IndexerConfig",
    "load_specifiers",
    "DocsEntry",
    "EntryType",
    "IndexEntry",
    "Specifier",
    "StoryEntry",
    "StoryIndex",
]
