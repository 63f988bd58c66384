"""
Shared test fixtures and utilities for storyindex tests.

Stories files in tests are JSON documents (``*.stories.json``) read by
``JsonStoriesExtractor``; docs files are ``*.mdx`` files whose content is
also JSON, read by ``JsonDocsAnalyzer``. This keeps the fixtures free of
any real file format while exercising the whole pipeline.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import orjson
import pytest

from storyindex.core.config import DocsOptions, IndexerConfig
from storyindex.core.types import Specifier
from storyindex.indexing.base import (
    CsfDescription,
    DocsAnalysis,
    ExtractedStory,
    ExtractionContext,
    StoryExtractor,
)
from storyindex.indexing.generator import StoryIndexGenerator


class JsonStoriesExtractor(StoryExtractor):
    """Reads ``{"title", "tags", "stories": [{"name", "tags", "parameters"}]}``."""

    pattern = r"\.stories\.json$"

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def extract(self, absolute_path: str, context: ExtractionContext) -> CsfDescription:
        self.calls.append(absolute_path)
        data = orjson.loads(Path(absolute_path).read_bytes())
        if "raise" in data:
            raise ValueError(data["raise"])
        return CsfDescription(
            title=context.make_title(data.get("title")),
            stories=[
                ExtractedStory(
                    name=story["name"],
                    tags=story.get("tags"),
                    parameters=story.get("parameters", {}),
                    id=story.get("id"),
                )
                for story in data.get("stories", [])
            ],
            tags=data.get("tags", []),
        )


class JsonDocsAnalyzer:
    """Reads ``{"title", "of", "name", "isTemplate", "imports", "tags"}``."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, content: str) -> DocsAnalysis:
        self.calls += 1
        data = orjson.loads(content)
        return DocsAnalysis(
            title=data.get("title"),
            of=data.get("of"),
            name=data.get("name"),
            is_template=data.get("isTemplate", False),
            imports=data.get("imports", []),
            tags=data.get("tags", []),
        )


class StoryProject:
    """A throwaway project directory with helpers to write stories and docs."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write(self, relative: str, data: dict[str, Any]) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(orjson.dumps(data))
        return path

    def stories(
        self,
        relative: str,
        names: list[str],
        title: str | None = None,
        tags: list[str] | None = None,
    ) -> Path:
        data: dict[str, Any] = {"stories": [{"name": name} for name in names]}
        if title is not None:
            data["title"] = title
        if tags is not None:
            data["tags"] = tags
        return self.write(relative, data)

    def docs(self, relative: str, **fields: Any) -> Path:
        return self.write(relative, fields)

    def absolute(self, relative: str) -> str:
        return str((self.root / relative).resolve())


@pytest.fixture
def project(tmp_path: Path) -> StoryProject:
    root = tmp_path / "project"
    root.mkdir()
    return StoryProject(root.resolve())


@pytest.fixture
def extractor() -> JsonStoriesExtractor:
    return JsonStoriesExtractor()


@pytest.fixture
def analyzer() -> JsonDocsAnalyzer:
    return JsonDocsAnalyzer()


@pytest.fixture
def make_config(
    project: StoryProject, extractor: JsonStoriesExtractor, analyzer: JsonDocsAnalyzer
) -> Callable[..., IndexerConfig]:
    """Factory for an IndexerConfig rooted at the project directory."""

    def factory(**overrides: Any) -> IndexerConfig:
        kwargs: dict[str, Any] = {
            "working_dir": project.root,
            "extractors": [extractor],
            "docs_analyzer": analyzer,
            "docs": DocsOptions(),
        }
        kwargs.update(overrides)
        return IndexerConfig(**kwargs)

    return factory


@pytest.fixture
def make_generator(
    project: StoryProject, make_config: Callable[..., IndexerConfig]
) -> Callable[..., StoryIndexGenerator]:
    """Factory for a generator; ``specs`` is a list of ``(directory, files)`` pairs."""

    def factory(
        specs: list[tuple[str, str]] | None = None, **config_overrides: Any
    ) -> StoryIndexGenerator:
        specifiers = [
            Specifier.normalize(directory, files, project.root)
            for directory, files in (specs or [("src", "**/*")])
        ]
        return StoryIndexGenerator(specifiers, make_config(**config_overrides))

    return factory


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "cli: CLI-related tests")
    config.addinivalue_line("markers", "cache: Cache-related tests")
