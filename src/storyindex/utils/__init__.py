"""
Utility modules for storyindex.

Modules:
    error_handling: Error types and error reports
    logging_config: Logging setup and the global logger
    naming: Identifier, title and name helpers
    formatter: Index output formatting
"""

from .error_handling import (
    ConfigurationError,
    IndexingError,
    MultipleIndexingError,
    StoryIndexError,
)
from .logging_config import configure_logging, get_logger
from .naming import auto_name, to_id, user_or_auto_title

__all__ = [
    "ConfigurationError",
    "IndexingError",
    "MultipleIndexingError",
    "StoryIndexError",
    "configure_logging",
    "get_logger",
    "auto_name",
    "to_id",
    "user_or_auto_title",
]
