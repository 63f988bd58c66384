"""Tests for storyindex.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from storyindex.core.config import DocsOptions, IndexerConfig, load_specifiers
from storyindex.utils.error_handling import ConfigurationError


class TestDocsOptions:
    """Tests for DocsOptions defaults."""

    def test_defaults(self):
        docs = DocsOptions()
        assert docs.autodocs == "tag"
        assert docs.default_name == "Docs"


class TestIndexerConfig:
    """Tests for IndexerConfig."""

    def test_defaults(self):
        cfg = IndexerConfig()
        assert cfg.story_store_v7 is True
        assert cfg.stories_v2_compatibility is False
        assert cfg.skip_extensions == (".storyshot",)
        assert cfg.extractors == []
        assert cfg.docs_analyzer is None

    def test_config_dir_default(self, tmp_path: Path):
        cfg = IndexerConfig(working_dir=tmp_path)
        assert cfg.resolve_config_dir() == tmp_path.resolve() / ".storyindex"

    def test_config_dir_explicit(self, tmp_path: Path):
        cfg = IndexerConfig(working_dir=tmp_path, config_dir=tmp_path / "cfg")
        assert cfg.resolve_config_dir() == tmp_path / "cfg"

    def test_is_docs_file(self):
        cfg = IndexerConfig()
        assert cfg.is_docs_file("/p/src/Intro.mdx")
        assert cfg.is_docs_file("/p/src/Intro.MDX")
        assert not cfg.is_docs_file("/p/src/Button.stories.mdx")
        assert not cfg.is_docs_file("/p/src/Button.stories.json")

    def test_validate_ok(self, tmp_path: Path):
        IndexerConfig(working_dir=tmp_path).validate()

    def test_validate_empty_default_name(self, tmp_path: Path):
        cfg = IndexerConfig(working_dir=tmp_path, docs=DocsOptions(default_name=""))
        with pytest.raises(ConfigurationError, match="default name"):
            cfg.validate()

    def test_validate_bad_autodocs(self, tmp_path: Path):
        cfg = IndexerConfig(working_dir=tmp_path, docs=DocsOptions(autodocs="always"))  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError, match="autodocs"):
            cfg.validate()

    def test_validate_missing_working_dir(self, tmp_path: Path):
        cfg = IndexerConfig(working_dir=tmp_path / "missing")
        with pytest.raises(ConfigurationError, match="Working directory"):
            cfg.validate()

    def test_validate_bad_docs_pattern(self, tmp_path: Path):
        cfg = IndexerConfig(working_dir=tmp_path, docs_pattern="(")
        with pytest.raises(ConfigurationError, match="docs pattern"):
            cfg.validate()


class TestFromToml:
    """Tests for loading configuration from TOML."""

    def test_load(self, tmp_path: Path):
        path = tmp_path / "storyindex.toml"
        path.write_text(
            'stories_v2_compatibility = true\n'
            'skip_extensions = [".snap"]\n'
            "\n"
            "[docs]\n"
            "autodocs = true\n"
            'default_name = "Overview"\n',
            encoding="utf-8",
        )
        cfg = IndexerConfig.from_toml(path)
        assert cfg.working_dir == tmp_path.resolve()
        assert cfg.stories_v2_compatibility is True
        assert cfg.skip_extensions == (".snap",)
        assert cfg.docs.autodocs is True
        assert cfg.docs.default_name == "Overview"

    def test_overrides(self, tmp_path: Path):
        path = tmp_path / "storyindex.toml"
        path.write_text("", encoding="utf-8")
        cfg = IndexerConfig.from_toml(path, story_store_v7=False)
        assert cfg.story_store_v7 is False

    def test_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "storyindex.toml"
        path.write_text("not = [valid", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Cannot load"):
            IndexerConfig.from_toml(path)


class TestLoadSpecifiers:
    """Tests for [[stories]] tables."""

    def test_load(self, tmp_path: Path):
        path = tmp_path / "storyindex.toml"
        path.write_text(
            "[[stories]]\n"
            'directory = "src"\n'
            'files = "**/*.stories.json"\n'
            "\n"
            "[[stories]]\n"
            'directory = "docs"\n'
            'files = "**/*.mdx"\n'
            'title_prefix = "Guides"\n',
            encoding="utf-8",
        )
        specifiers = load_specifiers(path, tmp_path)
        assert [s.directory for s in specifiers] == ["./src", "./docs"]
        assert specifiers[1].title_prefix == "Guides"

    def test_missing_files_key(self, tmp_path: Path):
        path = tmp_path / "storyindex.toml"
        path.write_text('[[stories]]\ndirectory = "src"\n', encoding="utf-8")
        with pytest.raises(ConfigurationError, match="directory' and 'files'"):
            load_specifiers(path, tmp_path)
