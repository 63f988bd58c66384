"""
Duplicate entry resolution.

Two entries with the same identifier are expected (a story named like the
docs page, an authored docs page replacing a generated one, two stories
files sharing a title). ``DuplicateResolver.choose_duplicate`` picks the
surviving entry:

    story > authored docs page > generated docs page

Two generated docs pages are merged so every contributing stories file is
still loaded. Two stories, or an authored docs page replacing the docs page
of a file explicitly tagged ``autodocs``, are conflicts.
"""

from __future__ import annotations

import dataclasses

from ..core.config import DocsOptions
from ..core.types import AUTODOCS_TAG, DocsEntry, IndexEntry, StoryEntry
from ..utils.error_handling import DuplicateConflictError
from ..utils.logging_config import get_logger

logger = get_logger()

CHANGE_DOCS_NAME = 'Use `of` together with a `name` (e.g. name="Other Name") to distinguish them.'


class DuplicateResolver:
    """Total order over entries that share an identifier."""

    def __init__(self, docs: DocsOptions):
        self.docs = docs
        self.warnings: list[str] = []

    def _warn(self, message: str, entry_id: str) -> None:
        self.warnings.append(message)
        logger.log_duplicate_warning(message, entry_id=entry_id)

    def choose_duplicate(self, first: IndexEntry, second: IndexEntry) -> IndexEntry:
        """
        Pick (or build) the entry that survives under a shared identifier.

        Raises:
            DuplicateConflictError: Both entries are stories, or an authored
                docs page collides with the docs page of a file tagged
                ``autodocs`` while autodocs is not forced on
        """
        first_is_better = True
        if isinstance(second, StoryEntry):
            first_is_better = False
        elif second.is_mdx and isinstance(first, DocsEntry) and not first.is_mdx:
            first_is_better = False

        better = first if first_is_better else second
        worse = second if first_is_better else first

        if isinstance(worse, StoryEntry):
            raise DuplicateConflictError(
                f"Duplicate stories with id: {first.id}",
                [first.import_path, second.import_path],
            )

        if isinstance(better, StoryEntry):
            if better.name == self.docs.default_name:
                logger.debug(
                    f"Dropping docs page {worse.import_path} in favour of story "
                    f"{better.title}:{better.name}",
                    entry_id=better.id,
                )
            else:
                descriptor = (
                    "component docs page" if worse.is_mdx else "automatically generated docs page"
                )
                self._warn(
                    f"You have a story for {better.title} with the same name as your "
                    f"{descriptor} ({worse.name}), so the docs page is being dropped. "
                    f"{CHANGE_DOCS_NAME}",
                    better.id,
                )
            return better

        if better.is_mdx:
            if worse.is_mdx:
                self._warn(
                    f"You have two component docs pages with the same name "
                    f"{better.title}:{better.name}. {CHANGE_DOCS_NAME}",
                    better.id,
                )

            # A docs page linked to a file tagged for autodocs is probably a mistake
            if AUTODOCS_TAG in worse.tags and self.docs.autodocs is not True:
                raise DuplicateConflictError(
                    f"You created a component docs page for '{worse.title}', but also tagged "
                    f"the stories file with '{AUTODOCS_TAG}'. This is probably a mistake.",
                    [better.import_path, worse.import_path],
                )

            # Otherwise the generated page came from autodocs=True and may be replaced
            return better

        # Two generated pages, e.g. two stories files with one title
        return dataclasses.replace(
            better,
            stories_imports=(
                *better.stories_imports,
                worse.import_path,
                *worse.stories_imports,
            ),
        )
