"""
Core data types for storyindex.

Entries:
    StoryEntry: One renderable example extracted from a stories file
    DocsEntry: A documentation page, authored or attached to a stories file
    IndexEntry: ``StoryEntry | DocsEntry``

Cache states (one per indexed path):
    Unprocessed: Not extracted yet, or invalidated
    StoriesResult: Entries of a stories file and the docs files depending on it
    DocsResult: The entry of a docs file
    Skipped: A docs file that produces no entry (template)
    ErrorResult: Extraction failed; terminal until invalidated

Index:
    StoryIndex: Ordered mapping of identifier to entry plus a version tag
    V2CompatEntry: Legacy view of a story entry
"""

from __future__ import annotations

import functools
import posixpath
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Union

import pathspec

from ..utils.error_handling import IndexingError
from ..utils.naming import normalize_story_path, slash, to_import_path

INDEX_VERSION = 4

AUTODOCS_TAG = "autodocs"
STORIES_MDX_TAG = "stories-mdx"
STORY_TAG = "story"
DOCS_TAG = "docs"


class EntryType(str, Enum):
    STORY = "story"
    DOCS = "docs"


@functools.lru_cache(maxsize=128)
def _files_spec(files: str) -> pathspec.PathSpec:
    # Anchored at the specifier directory
    return pathspec.PathSpec.from_lines("gitwildmatch", ["/" + files.lstrip("/")])


@dataclass(frozen=True, slots=True)
class Specifier:
    """
    A declared group of source files: a directory plus a files glob.

    ``directory`` is kept in import path form (``./src``), relative to the
    working directory; ``src``, ``src/`` and ``./src`` all normalize to
    ``./src``. ``files`` is relative to ``directory`` and anchored there, so
    ``*.stories.json`` only matches files directly inside it. ``tags`` act as
    component tags of every stories file the specifier matches. Specifiers
    are ordered; the order of declaration is the file import order used
    for sorting.
    """

    directory: str
    files: str
    title_prefix: str = ""
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        directory = posixpath.normpath(slash(self.directory))
        if directory != ".":
            directory = slash(normalize_story_path(directory))
        object.__setattr__(self, "directory", directory)
        object.__setattr__(self, "tags", tuple(self.tags))

    @classmethod
    def normalize(
        cls,
        directory: str,
        files: str,
        working_dir: Path | str,
        title_prefix: str = "",
        tags: tuple[str, ...] = (),
    ) -> Specifier:
        """Build a specifier for ``directory`` given relative to, or inside, ``working_dir``."""
        absolute = Path(working_dir, directory).resolve()
        return cls(
            directory=to_import_path(str(absolute), str(Path(working_dir).resolve())),
            files=files,
            title_prefix=title_prefix,
            tags=tuple(tags),
        )

    def matches_relative(self, relative_path: str) -> bool:
        """Does a path relative to ``directory`` match the files glob?"""
        return _files_spec(self.files).match_file(relative_path)

    def matches_import_path(self, import_path: str) -> bool:
        prefix = "./" if self.directory == "." else f"{self.directory}/"
        if not import_path.startswith(prefix):
            return False
        return self.matches_relative(import_path[len(prefix):])


@dataclass(frozen=True, slots=True)
class StoryEntry:
    id: str
    title: str
    name: str
    import_path: str
    tags: tuple[str, ...] = ()

    @property
    def type(self) -> EntryType:
        return EntryType.STORY

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "name": self.name,
            "importPath": self.import_path,
            "type": self.type.value,
            "tags": list(self.tags),
        }


@dataclass(frozen=True, slots=True)
class DocsEntry:
    id: str
    title: str
    name: str
    import_path: str
    tags: tuple[str, ...] = ()
    stories_imports: tuple[str, ...] = ()

    @property
    def type(self) -> EntryType:
        return EntryType.DOCS

    @property
    def is_mdx(self) -> bool:
        """Authored docs page, as opposed to one generated for a stories file."""
        return AUTODOCS_TAG not in self.tags and STORIES_MDX_TAG not in self.tags

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "name": self.name,
            "importPath": self.import_path,
            "type": self.type.value,
            "tags": list(self.tags),
            "storiesImports": list(self.stories_imports),
        }


IndexEntry = Union[StoryEntry, DocsEntry]


def is_mdx_entry(entry: DocsEntry) -> bool:
    return entry.is_mdx


class Unprocessed:
    """Slot state before extraction. Use the ``UNPROCESSED`` singleton."""

    _instance: Unprocessed | None = None

    def __new__(cls) -> Unprocessed:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNPROCESSED"


UNPROCESSED = Unprocessed()


@dataclass(slots=True)
class StoriesResult:
    """Entries of one stories file.

    ``dependents`` holds the absolute paths of docs files that imported this
    file; they are reset when this file is invalidated.
    """

    entries: list[IndexEntry]
    dependents: list[str] = field(default_factory=list)

    def add_dependent(self, absolute_path: str) -> None:
        if absolute_path not in self.dependents:
            self.dependents.append(absolute_path)

    def remove_dependent(self, absolute_path: str) -> None:
        if absolute_path in self.dependents:
            self.dependents.remove(absolute_path)


@dataclass(frozen=True, slots=True)
class DocsResult:
    entry: DocsEntry


@dataclass(frozen=True, slots=True)
class Skipped:
    """A docs file that produces no entry."""

    reason: str = "template"


@dataclass(frozen=True, slots=True)
class ErrorResult:
    error: IndexingError


CacheEntry = Union[Unprocessed, StoriesResult, DocsResult, Skipped, ErrorResult]


@dataclass(slots=True)
class V2CompatEntry:
    """Legacy view of a story entry."""

    id: str
    title: str
    name: str
    import_path: str
    tags: tuple[str, ...]
    kind: str
    story: str
    parameters: dict[str, Any]

    @property
    def type(self) -> EntryType:
        return EntryType.STORY

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "name": self.name,
            "importPath": self.import_path,
            "type": self.type.value,
            "tags": list(self.tags),
            "kind": self.kind,
            "story": self.story,
            "parameters": dict(self.parameters),
        }


@dataclass(slots=True)
class StoryIndex:
    entries: dict[str, Any]
    v: int = INDEX_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "v": self.v,
            "entries": {entry_id: entry.to_dict() for entry_id, entry in self.entries.items()},
        }

    def __len__(self) -> int:
        return len(self.entries)
