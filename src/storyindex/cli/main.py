"""
Command-line interface for storyindex.

Builds the index once and prints it. Extractors and the docs analyzer are
Python objects, so they are named on the command line as ``module:attr``;
a class is instantiated without arguments.

Example Usage:
    $ storyindex build --stories "src:**/*.stories.py" \\
        --extractor myproject.indexing:PyStoriesExtractor --format json

    $ storyindex build --config storyindex.toml --extractor mypkg:Extractor \\
        --analyzer mypkg:analyze_docs --v2-compat
"""

from __future__ import annotations

import asyncio
import importlib
import sys
from pathlib import Path
from typing import Any

import click

from ..core.config import IndexerConfig, load_specifiers
from ..core.types import Specifier
from ..indexing.generator import StoryIndexGenerator
from ..utils.error_handling import StoryIndexError, create_error_report
from ..utils.formatter import OutputFormat, format_index
from ..utils.logging_config import LogFormat, LogLevel, configure_logging


def load_object(reference: str) -> Any:
    """Import ``module:attr``; classes are instantiated."""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(f"expected 'module:attr', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
        obj = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot load {reference!r}: {e}") from e
    if isinstance(obj, type):
        return obj()
    return obj


def parse_stories_option(value: str, working_dir: Path) -> Specifier:
    directory, sep, files = value.partition(":")
    if not sep or not files:
        raise click.BadParameter(f"expected 'DIRECTORY:GLOB', got {value!r}")
    return Specifier.normalize(directory or ".", files, working_dir)


@click.group()
def cli() -> None:
    """storyindex - Incremental index of stories and docs files"""
    pass


@cli.command("build")
@click.option(
    "--working-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Base directory for import paths (default: config file directory or '.')",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="TOML file with settings and [[stories]] specifiers",
)
@click.option("--stories", "stories", multiple=True, help="Specifier as DIRECTORY:GLOB, repeatable")
@click.option("--extractor", "extractors", multiple=True, help="Stories extractor as module:attr")
@click.option("--analyzer", help="Docs analyzer as module:attr")
@click.option("--v2-compat", is_flag=True, default=False, help="Emit the legacy v2 entry shape")
@click.option(
    "--format",
    "fmt",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.JSON.value,
    help="Output format",
)
@click.option(
    "--log-format",
    type=click.Choice([f.value for f in LogFormat]),
    default=LogFormat.SIMPLE.value,
    help="Log output format",
)
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
def build_cmd(
    working_dir: Path | None,
    config_file: Path | None,
    stories: tuple[str, ...],
    extractors: tuple[str, ...],
    analyzer: str | None,
    v2_compat: bool,
    fmt: str,
    log_format: str,
    debug: bool,
) -> None:
    """Build the index and print it."""
    configure_logging(
        level=LogLevel.DEBUG if debug else LogLevel.WARNING,
        format_type=LogFormat(log_format),
    )

    overrides: dict[str, Any] = {
        "extractors": [load_object(ref) for ref in extractors],
        "docs_analyzer": load_object(analyzer) if analyzer else None,
    }
    if v2_compat:
        overrides["stories_v2_compatibility"] = True
    if working_dir is not None:
        overrides["working_dir"] = working_dir.resolve()

    try:
        if config_file is not None:
            cfg = IndexerConfig.from_toml(config_file, **overrides)
        else:
            overrides.setdefault("working_dir", Path(".").resolve())
            cfg = IndexerConfig(**overrides)

        specifiers = []
        if config_file is not None:
            specifiers.extend(load_specifiers(config_file, cfg.working_dir))
        specifiers.extend(parse_stories_option(value, cfg.working_dir) for value in stories)
        if not specifiers:
            click.echo("Error: no specifiers given (use --stories or [[stories]])", err=True)
            sys.exit(1)

        generator = StoryIndexGenerator(specifiers, cfg)

        async def run() -> Any:
            await generator.initialize()
            return await generator.get_index()

        index = asyncio.run(run())
    except StoryIndexError as e:
        click.echo(create_error_report(e), err=True)
        sys.exit(1)

    output = format_index(index, OutputFormat(fmt))
    if output:
        click.echo(output)


def main() -> None:
    cli(prog_name="storyindex")


if __name__ == "__main__":
    main()
