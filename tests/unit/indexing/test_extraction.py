"""Tests for storyindex.indexing.extraction module."""

from __future__ import annotations

import asyncio

import pytest

from storyindex.core.config import DocsOptions
from storyindex.core.types import (
    UNPROCESSED,
    DocsEntry,
    DocsResult,
    ErrorResult,
    Skipped,
    StoriesResult,
    StoryEntry,
)
from storyindex.indexing.base import StoryExtractor
from storyindex.utils.error_handling import (
    IndexingError,
    MissingReferenceError,
    NoMatchingExtractorError,
)


class TestExtractStories:
    """Tests for stories file extraction."""

    @pytest.mark.asyncio
    async def test_story_entries(self, project, make_generator):
        path = project.stories("src/Button.stories.json", ["Primary", "Secondary"])
        generator = make_generator()
        await generator.initialize()

        result = generator.store.get(generator.specifiers[0], project.absolute("src/Button.stories.json"))
        assert isinstance(result, StoriesResult)
        assert [e.id for e in result.entries] == ["button--primary", "button--secondary"]
        entry = result.entries[0]
        assert isinstance(entry, StoryEntry)
        assert entry.import_path == "./src/Button.stories.json"
        assert entry.tags == ("story",)
        assert path.exists()

    @pytest.mark.asyncio
    async def test_user_title(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"], title="Atoms/Button")
        generator = make_generator()
        await generator.initialize()
        index = await generator.get_index()
        assert list(index.entries) == ["atoms-button--primary"]

    @pytest.mark.asyncio
    async def test_story_tags_override_component_tags(self, project, make_generator):
        project.write(
            "src/Button.stories.json",
            {
                "tags": ["beta"],
                "stories": [{"name": "Primary"}, {"name": "Secondary", "tags": ["wip"]}],
            },
        )
        generator = make_generator()
        await generator.initialize()
        index = await generator.get_index()
        assert index.entries["button--primary"].tags == ("beta", "story")
        assert index.entries["button--secondary"].tags == ("wip", "story")

    @pytest.mark.asyncio
    async def test_explicit_story_id(self, project, make_generator):
        project.write(
            "src/Button.stories.json",
            {"stories": [{"name": "Primary", "id": "custom--id"}]},
        )
        generator = make_generator()
        await generator.initialize()
        index = await generator.get_index()
        assert list(index.entries) == ["custom--id"]

    @pytest.mark.asyncio
    async def test_docs_only_stories_excluded(self, project, make_generator):
        project.write(
            "src/Button.stories.json",
            {
                "stories": [
                    {"name": "Primary"},
                    {"name": "Hidden", "parameters": {"docsOnly": True}},
                ]
            },
        )
        generator = make_generator()
        await generator.initialize()
        index = await generator.get_index()
        assert list(index.entries) == ["button--primary"]

    @pytest.mark.asyncio
    async def test_autodocs_tag(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"], tags=["autodocs"])
        generator = make_generator()
        await generator.initialize()
        index = await generator.get_index()
        assert list(index.entries) == ["button--docs", "button--primary"]
        docs = index.entries["button--docs"]
        assert isinstance(docs, DocsEntry)
        assert docs.tags == ("autodocs", "docs")
        assert docs.import_path == "./src/Button.stories.json"
        assert docs.stories_imports == ()

    @pytest.mark.asyncio
    async def test_autodocs_tag_mode_without_tag(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"])
        generator = make_generator()
        await generator.initialize()
        assert list((await generator.get_index()).entries) == ["button--primary"]

    @pytest.mark.asyncio
    async def test_autodocs_forced(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"])
        generator = make_generator(docs=DocsOptions(autodocs=True, default_name="Overview"))
        await generator.initialize()
        index = await generator.get_index()
        docs = index.entries["button--overview"]
        assert docs.name == "Overview"
        assert docs.tags == ("docs", "autodocs")

    @pytest.mark.asyncio
    async def test_autodocs_disabled(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"], tags=["autodocs"])
        generator = make_generator(docs=DocsOptions(autodocs=False))
        await generator.initialize()
        assert list((await generator.get_index()).entries) == ["button--primary"]

    @pytest.mark.asyncio
    async def test_stories_mdx_tag(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"], tags=["stories-mdx"])
        generator = make_generator(docs=DocsOptions(autodocs=False))
        await generator.initialize()
        index = await generator.get_index()
        assert index.entries["button--docs"].tags == ("stories-mdx", "docs")

    @pytest.mark.asyncio
    async def test_no_matching_extractor(self, project, make_generator):
        project.root.joinpath("src").mkdir()
        project.root.joinpath("src", "Button.stories.yaml").write_text("x", encoding="utf-8")
        generator = make_generator()
        await generator.initialize()
        slot = generator.store.get(generator.specifiers[0], project.absolute("src/Button.stories.yaml"))
        assert isinstance(slot, ErrorResult)
        assert isinstance(slot.error, NoMatchingExtractorError)
        assert slot.error.import_paths == ["./src/Button.stories.yaml"]

    @pytest.mark.asyncio
    async def test_extractor_failure_is_isolated(self, project, make_generator):
        project.write("src/Broken.stories.json", {"raise": "cannot parse"})
        project.stories("src/Button.stories.json", ["Primary"])
        generator = make_generator()
        await generator.initialize()

        spec = generator.specifiers[0]
        broken = generator.store.get(spec, project.absolute("src/Broken.stories.json"))
        assert isinstance(broken, ErrorResult)
        assert broken.error.message == "cannot parse"
        assert broken.error.import_paths == ["./src/Broken.stories.json"]
        assert "ValueError" in broken.error.stack
        assert isinstance(
            generator.store.get(spec, project.absolute("src/Button.stories.json")), StoriesResult
        )


class TestExtractDocs:
    """Tests for docs file extraction."""

    @pytest.mark.asyncio
    async def test_of_reference(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"], title="Atoms/Button")
        project.docs("src/Button.mdx", of="./Button.stories", imports=["./Button.stories"])
        generator = make_generator()
        await generator.initialize()

        slot = generator.store.get(generator.specifiers[0], project.absolute("src/Button.mdx"))
        assert isinstance(slot, DocsResult)
        assert slot.entry.id == "atoms-button--docs"
        assert slot.entry.title == "Atoms/Button"
        assert slot.entry.stories_imports == ("./src/Button.stories.json",)
        assert slot.entry.tags == ("docs",)

    @pytest.mark.asyncio
    async def test_name_from_docs_file(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"])
        project.docs("src/Usage.mdx", of="./Button.stories", imports=["./Button.stories"])
        generator = make_generator()
        await generator.initialize()
        index = await generator.get_index()
        assert "button--usage" in index.entries

    @pytest.mark.asyncio
    async def test_explicit_name(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"])
        project.docs(
            "src/Button.mdx", of="./Button.stories", imports=["./Button.stories"], name="Guide"
        )
        generator = make_generator()
        await generator.initialize()
        assert "button--guide" in (await generator.get_index()).entries

    @pytest.mark.asyncio
    async def test_standalone_docs(self, project, make_generator):
        project.docs("src/Introduction.mdx", tags=["intro"])
        generator = make_generator()
        await generator.initialize()
        index = await generator.get_index()
        entry = index.entries["introduction--docs"]
        assert entry.tags == ("intro", "docs")
        assert entry.stories_imports == ()

    @pytest.mark.asyncio
    async def test_user_title(self, project, make_generator):
        project.docs("src/Introduction.mdx", title="Guides/Welcome")
        generator = make_generator()
        await generator.initialize()
        assert "guides-welcome--docs" in (await generator.get_index()).entries

    @pytest.mark.asyncio
    async def test_template_skipped(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"])
        project.docs("src/Template.mdx", isTemplate=True, imports=["./Button.stories"])
        generator = make_generator()
        await generator.initialize()

        spec = generator.specifiers[0]
        assert isinstance(generator.store.get(spec, project.absolute("src/Template.mdx")), Skipped)
        stories = generator.store.get(spec, project.absolute("src/Button.stories.json"))
        assert stories.dependents == []

    @pytest.mark.asyncio
    async def test_missing_reference(self, project, make_generator):
        project.docs("src/Button.mdx", of="./Missing.stories", imports=["./Missing.stories"])
        generator = make_generator()
        await generator.initialize()

        slot = generator.store.get(generator.specifiers[0], project.absolute("src/Button.mdx"))
        assert isinstance(slot, ErrorResult)
        assert isinstance(slot.error, MissingReferenceError)
        assert slot.error.import_paths == ["./src/Button.mdx"]

    @pytest.mark.asyncio
    async def test_records_dependents(self, project, make_generator):
        project.stories("src/Button.stories.json", ["Primary"])
        project.stories("src/Input.stories.json", ["Primary"])
        project.docs("src/Forms.mdx", imports=["./Button.stories", "./Input.stories"])
        generator = make_generator()
        await generator.initialize()

        docs_path = project.absolute("src/Forms.mdx")
        for name in ("Button", "Input"):
            assert generator.tracker.get_dependents(
                project.absolute(f"src/{name}.stories.json")
            ) == {docs_path}
        slot = generator.store.get(generator.specifiers[0], docs_path)
        assert slot.entry.stories_imports == (
            "./src/Button.stories.json",
            "./src/Input.stories.json",
        )

    @pytest.mark.asyncio
    async def test_requires_story_store_v7(self, project, make_generator):
        project.docs("src/Introduction.mdx")
        generator = make_generator(story_store_v7=False)
        await generator.initialize()
        slot = generator.store.get(generator.specifiers[0], project.absolute("src/Introduction.mdx"))
        assert isinstance(slot, ErrorResult)
        assert "story_store_v7" in slot.error.message

    @pytest.mark.asyncio
    async def test_requires_analyzer(self, project, make_generator):
        project.docs("src/Introduction.mdx")
        generator = make_generator(docs_analyzer=None)
        await generator.initialize()
        slot = generator.store.get(generator.specifiers[0], project.absolute("src/Introduction.mdx"))
        assert isinstance(slot, ErrorResult)
        assert "No docs analyzer" in slot.error.message


class TestUpdateExtracted:
    """Tests for the sweep primitive."""

    @pytest.mark.asyncio
    async def test_only_unprocessed(self, project, make_generator):
        project.stories("src/A.stories.json", ["One"])
        project.stories("src/B.stories.json", ["One"])
        generator = make_generator()
        await generator.initialize()
        spec = generator.specifiers[0]
        generator.store.reset(spec, project.absolute("src/B.stories.json"))

        touched: list[str] = []

        async def updater(specifier, absolute_path, entry):
            touched.append(absolute_path)
            return entry

        await generator.update_extracted(updater)
        assert touched == [project.absolute("src/B.stories.json")]

        touched.clear()
        await generator.update_extracted(updater, overwrite=True)
        assert len(touched) == 2

    @pytest.mark.asyncio
    async def test_updates_run_concurrently(self, project, make_generator):
        project.stories("src/A.stories.json", ["One"])
        project.stories("src/B.stories.json", ["One"])
        generator = make_generator()
        await generator.initialize()

        running = 0
        peak = 0

        async def updater(specifier, absolute_path, entry):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return entry

        await generator.update_extracted(updater, overwrite=True)
        assert peak == 2

    @pytest.mark.asyncio
    async def test_updater_error_stored(self, project, make_generator):
        project.stories("src/A.stories.json", ["One"])
        generator = make_generator()
        await generator.initialize()
        spec = generator.specifiers[0]
        path = project.absolute("src/A.stories.json")
        generator.store.reset(spec, path)

        async def updater(specifier, absolute_path, entry):
            raise IndexingError("custom failure")

        await generator.update_extracted(updater)
        slot = generator.store.get(spec, path)
        assert isinstance(slot, ErrorResult)
        assert slot.error.import_paths == ["./src/A.stories.json"]

    @pytest.mark.asyncio
    async def test_primary_sweep_leaves_docs_unprocessed(self, project, make_generator):
        project.docs("src/Introduction.mdx")
        generator = make_generator()
        spec = generator.specifiers[0]
        generator.store.install(spec, [project.absolute("src/Introduction.mdx")])

        async def primary(specifier, absolute_path, entry):
            if generator.config.is_docs_file(absolute_path):
                return entry
            raise AssertionError("unexpected stories file")

        await generator.update_extracted(primary)
        assert generator.store.get(spec, project.absolute("src/Introduction.mdx")) is UNPROCESSED

    @pytest.mark.asyncio
    async def test_docs_sweep_waits_for_slow_stories(self, project, make_generator, extractor):
        class SlowExtractor(StoryExtractor):
            pattern = r"\.stories\.json$"

            async def extract(self, absolute_path, context):
                await asyncio.sleep(0.05)
                return await extractor.extract(absolute_path, context)

        # A.mdx sorts before its target, so it is scheduled first
        project.docs("src/A.mdx", of="./B.stories.json", imports=["./B.stories.json"])
        project.stories("src/B.stories.json", ["One"], title="Button")
        generator = make_generator(extractors=[SlowExtractor()])
        await generator.initialize()

        spec = generator.specifiers[0]
        slot = generator.store.get(spec, project.absolute("src/A.mdx"))
        assert isinstance(slot, DocsResult)
        assert slot.entry.title == "Button"
        assert slot.entry.stories_imports == ("./src/B.stories.json",)
