"""
Entry ordering.

Entries are sorted with the sort directive from the preview file (or an
explicit comparator), falling back to file import order. Sorting is stable,
so entries the directive considers equal keep their import order.

Classes:
    StorySortOptions: Declarative sort directive
    PreviewSortSource: Reads the sort directive from the preview file once

Functions:
    story_sort: Comparator implementing a StorySortOptions directive
    sort_entries: Stable sort with a directive or by file import order
"""

from __future__ import annotations

import functools
import re
import tomllib
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import orjson

from ..core.types import IndexEntry
from ..utils.error_handling import ConfigurationError, StorySortError
from ..utils.logging_config import get_logger

logger = get_logger()

PREVIEW_EXTENSIONS = ("toml", "json")
STORY_KIND_PATH_SEPARATOR = "/"
SORT_METHODS = ("configure", "alphabetical")

Comparator = Callable[[Any, Any], int]

_NUMBER_RE = re.compile(r"(\d+)")


@dataclass(slots=True)
class StorySortOptions:
    """
    Sort directive.

    ``order`` lists title segments in the wanted order; a list following a
    segment orders that segment's children, and ``"*"`` stands for every
    segment not listed. Unlisted segments are compared with ``method``:
    ``configure`` keeps them in import order, ``alphabetical`` compares
    them naturally and case-insensitively.
    """

    method: str = "configure"
    order: list[Any] = field(default_factory=list)
    include_names: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> StorySortOptions:
        method = data.get("method") or "configure"
        if method not in SORT_METHODS:
            raise ConfigurationError(
                f"Unknown story sort method: {method}",
                context={"field": "storySort.method", "value": method},
            )
        return cls(
            method=method,
            order=list(data.get("order", [])),
            include_names=bool(data.get("includeNames", data.get("include_names", False))),
        )


StorySortParameter = Union[StorySortOptions, Comparator]


def _natural_key(value: str) -> list[Any]:
    return [
        (0, int(part)) if part.isdigit() else (1, part.casefold())
        for part in _NUMBER_RE.split(value)
        if part
    ]


def _natural_compare(a: str, b: str) -> int:
    key_a, key_b = _natural_key(a), _natural_key(b)
    return (key_a > key_b) - (key_a < key_b)


def story_sort(options: StorySortOptions) -> Comparator:
    """Comparator for a sort directive."""

    def compare(a: IndexEntry, b: IndexEntry) -> int:
        order: Sequence[Any] = options.order
        title_a = a.title.strip().split(STORY_KIND_PATH_SEPARATOR)
        title_b = b.title.strip().split(STORY_KIND_PATH_SEPARATOR)
        if options.include_names:
            title_a.append(a.name)
            title_b.append(b.name)

        depth = 0
        while depth < len(title_a) or depth < len(title_b):
            if depth >= len(title_a):
                return -1
            if depth >= len(title_b):
                return 1

            name_a = title_a[depth]
            name_b = title_b[depth]

            if name_a != name_b:
                index_a = order.index(name_a) if name_a in order else -1
                index_b = order.index(name_b) if name_b in order else -1
                index_wildcard = order.index("*") if "*" in order else -1

                if index_a != -1 or index_b != -1:
                    if index_a == -1:
                        index_a = index_wildcard if index_wildcard != -1 else len(order)
                    if index_b == -1:
                        index_b = index_wildcard if index_wildcard != -1 else len(order)
                    return index_a - index_b

                if options.method == "configure":
                    return 0

                return _natural_compare(name_a, name_b)

            # Same segment: descend into its sub-order, if any
            index = order.index(name_a) if name_a in order else -1
            if index == -1:
                index = order.index("*") if "*" in order else -1
            if index != -1 and index + 1 < len(order) and isinstance(order[index + 1], list):
                order = order[index + 1]
            else:
                order = []

            depth += 1

        return 0

    return compare


def sort_entries(
    entries: list[IndexEntry],
    sort_parameter: StorySortParameter | None,
    file_name_order: list[str],
) -> list[IndexEntry]:
    """
    Stable sort of ``entries``.

    Args:
        entries: Entries to sort
        sort_parameter: Directive or comparator; None sorts by file order
        file_name_order: Import paths in file import order

    Raises:
        StorySortError: The directive or comparator failed
    """
    if sort_parameter is None:
        positions = {name: index for index, name in enumerate(file_name_order)}
        fallback = len(positions)
        return sorted(entries, key=lambda entry: positions.get(entry.import_path, fallback))

    if isinstance(sort_parameter, StorySortOptions):
        compare = story_sort(sort_parameter)
    else:
        compare = sort_parameter

    try:
        return sorted(entries, key=functools.cmp_to_key(compare))
    except Exception as e:
        raise StorySortError(str(e), sort_parameter) from e


class PreviewSortSource:
    """
    Reads the sort directive of the preview file.

    The first existing ``preview.<ext>`` in ``config_dir`` (extensions tried
    in ``PREVIEW_EXTENSIONS`` order) is read once; the directive is
    ``parameters.options.storySort`` or a top level ``story_sort`` table.
    A missing file or directive means default ordering.
    """

    def __init__(self, config_dir: Path):
        self.config_dir = Path(config_dir)
        self._loaded = False
        self._parameter: StorySortOptions | None = None

    def find_preview_file(self) -> Path | None:
        for ext in PREVIEW_EXTENSIONS:
            candidate = self.config_dir / f"preview.{ext}"
            if candidate.exists():
                return candidate
        return None

    def load(self) -> StorySortOptions | None:
        if not self._loaded:
            self._parameter = self._read()
            self._loaded = True
        return self._parameter

    def _read(self) -> StorySortOptions | None:
        preview_file = self.find_preview_file()
        if preview_file is None:
            return None

        try:
            raw = preview_file.read_bytes()
            if preview_file.suffix == ".toml":
                data = tomllib.loads(raw.decode("utf-8"))
            else:
                data = orjson.loads(raw)
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError, orjson.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read preview file {preview_file}: {e}",
                context={"file": str(preview_file)},
            ) from e

        directive = _find_directive(data)
        if directive is None:
            logger.debug(f"No story sort directive in {preview_file}")
            return None
        if not isinstance(directive, Mapping):
            raise ConfigurationError(
                f"Story sort directive in {preview_file} must be a table",
                context={"file": str(preview_file)},
            )
        return StorySortOptions.from_mapping(directive)


def _find_directive(data: Any) -> Any:
    if not isinstance(data, Mapping):
        return None
    if "story_sort" in data:
        return data["story_sort"]
    parameters = data.get("parameters")
    if not isinstance(parameters, Mapping):
        return None
    options = parameters.get("options")
    if isinstance(options, Mapping):
        return options.get("storySort")
    return None
