"""
Error handling for storyindex.

Indexing failures are captured per file and reported in bulk, so the error
types here carry enough context (the relativized import paths involved and
the original stack) to be aggregated into a single report.

Error Categories:
    - EXTRACTION: A file failed to be indexed
    - REFERENCE: A docs file references a stories file that is not indexed
    - DUPLICATE: Two entries irreconcilably claim one identifier
    - CONFIGURATION: Invalid configuration or no matching extractor
    - SORTING: The user supplied sort directive failed

Classes:
    ErrorSeverity: Error severity levels
    ErrorCategory: Error classification categories
    ErrorInfo: Detailed error information container
    StoryIndexError: Base exception for the package
    IndexingError: Failure tied to one or more indexed files
    MultipleIndexingError: Aggregate of IndexingError instances
    ErrorCollector: Batch error collection

Functions:
    create_error_report: Render a human-readable report
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""

    EXTRACTION = "extraction"
    REFERENCE = "reference"
    DUPLICATE = "duplicate"
    CONFIGURATION = "configuration"
    SORTING = "sorting"
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """Detailed error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    import_paths: list[str] = field(default_factory=list)
    exception_type: str | None = None
    stack: str | None = None
    timestamp: float = field(default_factory=time.time)
    suggestions: list[str] = field(default_factory=list)


class StoryIndexError(Exception):
    """Base exception for storyindex errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.category: ErrorCategory = category
        self.severity: ErrorSeverity = severity
        self.suggestions: list[str] = suggestions or []
        self.context: dict[str, Any] = context or {}
        self.timestamp: float = time.time()


class ConfigurationError(StoryIndexError):
    """Configuration-related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            suggestions=[
                "Check configuration file syntax",
                "Verify all required settings",
            ],
            context=context,
        )


class IndexingError(StoryIndexError):
    """A failure while indexing one or more files.

    ``import_paths`` are the files involved, relative to the working
    directory. ``stack`` is the traceback of the original failure, when the
    error wraps one.
    """

    def __init__(
        self,
        message: str,
        import_paths: Sequence[str] = (),
        stack: str | None = None,
        category: ErrorCategory = ErrorCategory.EXTRACTION,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        suggestions: list[str] | None = None,
    ) -> None:
        super().__init__(message, category=category, severity=severity, suggestions=suggestions)
        self.import_paths: list[str] = list(import_paths)
        self.stack = stack

    def path_summary(self) -> str:
        return ",".join(self.import_paths)

    def __str__(self) -> str:
        return f"{self.path_summary()}: {self.message}"

    def pretty(self) -> str:
        """Full message including the original stack, when known."""
        if not self.stack:
            return str(self)
        return f"{self}\n{self.stack}"

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(
            category=self.category,
            severity=self.severity,
            message=self.message,
            import_paths=list(self.import_paths),
            exception_type=type(self).__name__,
            stack=self.stack,
            suggestions=list(self.suggestions),
        )


class NoMatchingExtractorError(IndexingError):
    """No registered extractor accepts the file."""

    def __init__(self, absolute_path: str) -> None:
        super().__init__(
            f"No matching story extractor found for {absolute_path}",
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            suggestions=["Register an extractor whose pattern matches this file"],
        )
        self.absolute_path = absolute_path


class MissingReferenceError(IndexingError):
    """A docs file's ``of`` reference does not resolve to an indexed stories file."""

    def __init__(self, reference: str, docs_path: str) -> None:
        super().__init__(
            f'Could not find stories file at path "{reference}" referenced by `of` '
            f'in docs file "{docs_path}".\n\n'
            "  - Does that file exist?\n"
            "  - If so, is it a stories file?\n"
            "  - If so, is it matched by one of the stories specifiers?",
            import_paths=[docs_path],
            category=ErrorCategory.REFERENCE,
        )
        self.reference = reference
        self.docs_path = docs_path


class DuplicateConflictError(IndexingError):
    """Two entries claim the same identifier and cannot be reconciled."""

    def __init__(self, message: str, import_paths: Sequence[str]) -> None:
        super().__init__(
            message,
            import_paths=import_paths,
            category=ErrorCategory.DUPLICATE,
            severity=ErrorSeverity.HIGH,
        )


class MultipleIndexingError(StoryIndexError):
    """Wraps every IndexingError found during one index build."""

    def __init__(self, errors: Iterable[IndexingError]) -> None:
        self.errors: list[IndexingError] = list(errors)
        lines = "\n".join(error.pretty() for error in self.errors)
        super().__init__(
            f"Unable to index files:\n{lines}",
            category=self.errors[0].category if self.errors else ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.HIGH,
        )

    def __str__(self) -> str:
        if len(self.errors) == 1:
            return f"Unable to index {self.errors[0]}"
        lines = "\n".join(f"  - {error}" for error in self.errors)
        return f"Unable to index files:\n{lines}"


class AggregateExtractionError(MultipleIndexingError):
    """Every per-file extraction failure of one build."""


class AggregateDuplicateConflictError(MultipleIndexingError):
    """Every duplicate conflict of one build."""


class DependencyContractError(RuntimeError):
    """A docs import resolved to a cache slot that holds no stories result."""


class StorySortError(StoryIndexError):
    """The configured sort directive failed while ordering entries."""

    def __init__(self, message: str, sort_parameter: Any) -> None:
        super().__init__(
            f"Error sorting stories with sort parameter {sort_parameter!r}:\n\n> {message}\n\n"
            "Are you using a sort function that is not deterministic?",
            category=ErrorCategory.SORTING,
            severity=ErrorSeverity.HIGH,
            context={"sort_parameter": repr(sort_parameter)},
        )


class ErrorCollector:
    """Collects IndexingError instances during a build."""

    def __init__(self, max_errors: int = 100) -> None:
        self.max_errors = max_errors
        self.errors: list[ErrorInfo] = []
        self.error_counts: dict[ErrorCategory, int] = {}

    def add_error(self, error: IndexingError) -> None:
        if len(self.errors) < self.max_errors:
            self.errors.append(error.to_info())
        self.error_counts[error.category] = self.error_counts.get(error.category, 0) + 1

    def get_summary(self) -> dict[str, Any]:
        return {
            "total_errors": sum(self.error_counts.values()),
            "by_category": {category.value: count for category, count in self.error_counts.items()},
        }


def create_error_report(error: StoryIndexError) -> str:
    """Create a human-readable error report."""
    collector = ErrorCollector()
    if isinstance(error, MultipleIndexingError):
        for item in error.errors:
            collector.add_error(item)
    elif isinstance(error, IndexingError):
        collector.add_error(error)
    else:
        return f"Index Error Report\n{'=' * 50}\n\n{error.message}"

    summary = collector.get_summary()
    report = ["Index Error Report", "=" * 50, ""]
    report.append(f"Total errors: {summary['total_errors']}")
    report.append("")

    report.append("Errors by category:")
    for category, count in summary["by_category"].items():
        report.append(f"  {category}: {count}")
    report.append("")

    for info in collector.errors:
        report.append(f"  - {info.message}")
        if info.import_paths:
            report.append(f"    Files: {', '.join(info.import_paths)}")
        if info.suggestions:
            report.append(f"    Suggestions: {', '.join(info.suggestions)}")

    return "\n".join(report)
