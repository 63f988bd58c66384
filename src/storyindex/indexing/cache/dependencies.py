"""
Dependency tracking between docs files and stories files.

A docs file imports stories files. When it is extracted, every stories
result it depends on records the docs file's path as a dependent, so that
re-extracting the stories file also re-extracts the docs file.

Classes:
    DependencyTracker: Resolves imports against the cache and records edges
"""

from __future__ import annotations

from collections.abc import Iterable

from ...core.types import StoriesResult
from ...utils.error_handling import DependencyContractError
from ...utils.logging_config import get_logger
from .store import CacheStore

logger = get_logger()

_BOUNDARY_CHARS = (".", "/")


def _is_boundary_match(file_name: str, absolute_import: str) -> bool:
    """True when ``file_name`` is the import itself plus an extension or subpath."""
    rest = file_name[len(absolute_import):]
    return rest == "" or rest.startswith(_BOUNDARY_CHARS) or absolute_import.endswith("/")


class DependencyTracker:
    """
    Finds the stories results a set of imports refers to.

    An import refers to a cached file when the file's absolute path starts
    with the import (imports usually omit the extension). Imports matching
    nothing are fine: docs files may import modules that are not indexed.
    The tracker never owns entries; it only records path relations on the
    ``StoriesResult`` objects held by the store.
    """

    def __init__(self, store: CacheStore):
        self.store = store

    def _matching_files(self, file_names: list[str], absolute_import: str) -> list[str]:
        candidates = [name for name in file_names if name.startswith(absolute_import)]
        if len(candidates) <= 1:
            return candidates

        # A prefix match that ends mid file name ("Button" vs "ButtonGroup")
        # is a false positive when a proper match exists.
        exact = [name for name in candidates if _is_boundary_match(name, absolute_import)]
        if exact and len(exact) < len(candidates):
            logger.debug(
                f"Ambiguous import {absolute_import}: using {exact}, ignoring "
                f"{[name for name in candidates if name not in exact]}"
            )
            return exact
        return candidates

    def find_dependencies(self, absolute_imports: Iterable[str]) -> list[StoriesResult]:
        """
        Stories results of every cached file matched by ``absolute_imports``.

        Raises:
            DependencyContractError: A matched slot holds anything but a
                stories result.
        """
        imports = list(absolute_imports)
        dependencies: list[StoriesResult] = []
        seen: set[int] = set()

        for specifier in self.store.specifiers:
            if not self.store.is_installed(specifier):
                continue
            file_names = self.store.paths(specifier)
            matched: list[str] = []
            for absolute_import in imports:
                for name in self._matching_files(file_names, absolute_import):
                    if name not in matched:
                        matched.append(name)

            for name in matched:
                entry = self.store.get(specifier, name)
                if not isinstance(entry, StoriesResult):
                    raise DependencyContractError(f"Unexpected dependency: {name} -> {entry!r}")
                if id(entry) not in seen:
                    seen.add(id(entry))
                    dependencies.append(entry)

        return dependencies

    @staticmethod
    def record_dependents(dependencies: Iterable[StoriesResult], absolute_path: str) -> None:
        """Record ``absolute_path`` as a dependent of every dependency."""
        for dependency in dependencies:
            dependency.add_dependent(absolute_path)

    def remove_dependent(self, absolute_path: str) -> int:
        """
        Drop ``absolute_path`` from the dependents of every stories result.

        Edges are recorded for every matched stories file, including ones
        that contributed no entries, so the whole store is scanned rather
        than the docs entry's ``stories_imports``. Reset slots hold no
        dependents and are skipped.

        Returns:
            Number of stories results updated
        """
        removed = 0
        for _, _, entry in self.store.slots():
            if not isinstance(entry, StoriesResult):
                continue
            if absolute_path in entry.dependents:
                entry.remove_dependent(absolute_path)
                removed += 1
        return removed

    def get_dependents(self, absolute_path: str) -> set[str]:
        """Dependents recorded on ``absolute_path`` in any cache."""
        dependents: set[str] = set()
        for _, path, entry in self.store.slots():
            if path == absolute_path and isinstance(entry, StoriesResult):
                dependents.update(entry.dependents)
        return dependents
