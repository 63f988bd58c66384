"""
storyindex: Incremental index of stories and docs files.

Given a list of specifiers (a directory plus a files glob), storyindex finds
the matched files, hands stories files to pluggable extractors and docs
files to a pluggable analyzer, and produces one deterministically ordered
index keyed by entry identifier. The index is rebuilt incrementally: only
invalidated files and the docs files depending on them are extracted again.

Main Classes:
    StoryIndexGenerator: Builds and maintains the index
    IndexerConfig: Configuration (working directory, docs options, plugins)
    Specifier: One group of files to index
    StoryExtractor: Base class for stories file extractors

Example Usage:
    >>> from storyindex import IndexerConfig, Specifier, StoryIndexGenerator
    >>> config = IndexerConfig(working_dir=Path("."), extractors=[MyExtractor()])
    >>> specifiers = [Specifier.normalize("src", "**/*.stories.py", config.working_dir)]
    >>> generator = StoryIndexGenerator(specifiers, config)
    >>> await generator.initialize()
    >>> index = await generator.get_index()
"""

from .core.config import DocsOptions, IndexerConfig
from .core.types import DocsEntry, Specifier, StoryEntry, StoryIndex
from .indexing import (
    CsfDescription,
    DocsAnalysis,
    ExtractedStory,
    ExtractionContext,
    StoryExtractor,
    StoryIndexGenerator,
    StorySortOptions,
)
from .utils.error_handling import (
    ConfigurationError,
    DuplicateConflictError,
    IndexingError,
    MissingReferenceError,
    MultipleIndexingError,
    NoMatchingExtractorError,
    StoryIndexError,
)
from .utils.logging_config import configure_logging, disable_logging, enable_debug_logging, get_logger

# Package metadata
__version__ = "0.1.0"
__license__ = "MIT"
__description__ = "Incremental index of stories and docs files"

__all__ = [
    "StoryIndexGenerator",
    "IndexerConfig",
    "DocsOptions",
    "Specifier",
    "StoryEntry",
    "DocsEntry",
    "StoryIndex",
    "StoryExtractor",
    "ExtractionContext",
    "CsfDescription",
    "ExtractedStory",
    "DocsAnalysis",
    "StorySortOptions",
    "StoryIndexError",
    "ConfigurationError",
    "IndexingError",
    "MultipleIndexingError",
    "MissingReferenceError",
    "DuplicateConflictError",
    "NoMatchingExtractorError",
    "configure_logging",
    "disable_logging",
    "enable_debug_logging",
    "get_logger",
    "__version__",
]
