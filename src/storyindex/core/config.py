"""
Configuration for storyindex.

``IndexerConfig`` is the single configuration object handed to the index
generator. It holds the working directory, the docs options, the pluggable
extractors and docs analyzer, and the legacy compatibility switches.

Example:
    >>> from storyindex.core.config import DocsOptions, IndexerConfig
    >>> config = IndexerConfig(
    ...     working_dir=Path("."),
    ...     docs=DocsOptions(autodocs="tag", default_name="Docs"),
    ...     extractors=[MyExtractor()],
    ... )
    >>> config.validate()
"""

from __future__ import annotations

import re
import tomllib
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Union

from ..utils.error_handling import ConfigurationError
from .types import Specifier

if TYPE_CHECKING:
    from ..indexing.base import DocsAnalyzer, StoryExtractor
    from ..indexing.sorting import StorySortParameter

AutodocsMode = Union[bool, Literal["tag"]]

DEFAULT_DOCS_PATTERN = r"(?<!\.stories)\.mdx$"


@dataclass(slots=True)
class DocsOptions:
    # True: every stories file gets a docs entry; "tag": only files tagged "autodocs"
    autodocs: AutodocsMode = "tag"
    default_name: str = "Docs"


@dataclass(slots=True)
class IndexerConfig:
    working_dir: Path = field(default_factory=lambda: Path("."))
    config_dir: Path | None = None  # default: <working_dir>/.storyindex

    # Legacy switches
    story_store_v7: bool = True
    stories_v2_compatibility: bool = False

    docs: DocsOptions = field(default_factory=DocsOptions)

    # Plugins
    extractors: list[StoryExtractor] = field(default_factory=list)
    docs_analyzer: DocsAnalyzer | None = None

    # Paths matched by a specifier but never indexed
    skip_extensions: tuple[str, ...] = (".storyshot",)
    docs_pattern: str = DEFAULT_DOCS_PATTERN

    # Overrides the preview file when set
    story_sort: StorySortParameter | Callable[[Any, Any], int] | None = None

    def resolve_working_dir(self) -> Path:
        return Path(self.working_dir).resolve()

    def resolve_config_dir(self) -> Path:
        return Path(self.config_dir) if self.config_dir else self.resolve_working_dir() / ".storyindex"

    def is_docs_file(self, absolute_path: str) -> bool:
        return re.search(self.docs_pattern, absolute_path, re.IGNORECASE) is not None

    def validate(self) -> None:
        """Validate configuration and raise ConfigurationError on issues."""
        if not self.docs.default_name:
            raise ConfigurationError(
                "Docs default name must not be empty",
                context={"field": "docs.default_name"},
            )

        if self.docs.autodocs not in (True, False, "tag"):
            raise ConfigurationError(
                "Docs autodocs must be true, false or 'tag'",
                context={"field": "docs.autodocs", "value": self.docs.autodocs},
            )

        if not self.resolve_working_dir().is_dir():
            raise ConfigurationError(
                f"Working directory does not exist: {self.working_dir}",
                context={"field": "working_dir", "value": str(self.working_dir)},
            )

        try:
            re.compile(self.docs_pattern)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid docs pattern: {e}",
                context={"field": "docs_pattern", "value": self.docs_pattern},
            ) from e

    @classmethod
    def from_toml(cls, path: Path | str, **overrides: Any) -> IndexerConfig:
        """
        Load the plain settings from a TOML file.

        Plugins cannot be expressed in TOML and are passed via ``overrides``.

        Recognized keys::

            working_dir = "."
            config_dir = ".storyindex"
            story_store_v7 = true
            stories_v2_compatibility = false
            skip_extensions = [".storyshot"]

            [docs]
            autodocs = "tag"
            default_name = "Docs"
        """
        path = Path(path)
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(
                f"Cannot load configuration file {path}: {e}",
                context={"file": str(path)},
            ) from e

        base = path.parent
        kwargs: dict[str, Any] = {}
        if "working_dir" in data:
            kwargs["working_dir"] = (base / data["working_dir"]).resolve()
        else:
            kwargs["working_dir"] = base.resolve()
        if "config_dir" in data:
            kwargs["config_dir"] = (base / data["config_dir"]).resolve()
        for key in ("story_store_v7", "stories_v2_compatibility", "docs_pattern"):
            if key in data:
                kwargs[key] = data[key]
        if "skip_extensions" in data:
            kwargs["skip_extensions"] = tuple(data["skip_extensions"])
        docs = data.get("docs", {})
        kwargs["docs"] = DocsOptions(
            autodocs=docs.get("autodocs", "tag"),
            default_name=docs.get("default_name", "Docs"),
        )
        kwargs.update(overrides)
        return cls(**kwargs)


def load_specifiers(path: Path | str, working_dir: Path | str) -> list[Specifier]:
    """Read ``[[stories]]`` tables (directory, files, title_prefix) from a TOML file."""
    path = Path(path)
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(
            f"Cannot load configuration file {path}: {e}",
            context={"file": str(path)},
        ) from e

    specifiers = []
    for item in data.get("stories", []):
        if "directory" not in item or "files" not in item:
            raise ConfigurationError(
                "Each [[stories]] table needs 'directory' and 'files'",
                context={"file": str(path), "item": item},
            )
        specifiers.append(
            Specifier.normalize(
                item["directory"],
                item["files"],
                working_dir,
                title_prefix=item.get("title_prefix", ""),
                tags=tuple(item.get("tags", ())),
            )
        )
    return specifiers
