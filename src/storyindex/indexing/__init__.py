"""
Indexing package for storyindex.

Public API:
    StoryIndexGenerator: Incremental index over stories specifiers
    StoryExtractor: Base class for stories file extractors
    CsfDescription, ExtractedStory: What an extractor returns
    DocsAnalysis: What a docs analyzer returns
    StorySortOptions: Declarative sort directive
"""

from .base import (
    CsfDescription,
    DocsAnalysis,
    DocsAnalyzer,
    ExtractedStory,
    ExtractionContext,
    StoryExtractor,
)
from .generator import StoryIndexGenerator
from .sorting import StorySortOptions

__all__ = [
    "StoryIndexGenerator",
    "StoryExtractor",
    "ExtractionContext",
    "CsfDescription",
    "ExtractedStory",
    "DocsAnalysis",
    "DocsAnalyzer",
    "StorySortOptions",
]
