"""
Output formatting for story indexes.

Functions:
    to_json_bytes: Fast JSON serialization using orjson
    format_text: One line per entry, plain text
    render_table: Rich table rendering to a console
    format_index: Format according to an OutputFormat
"""

from __future__ import annotations

from enum import Enum

import orjson
from rich.console import Console
from rich.table import Table

from ..core.types import StoryIndex


class OutputFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    TABLE = "table"


def to_json_bytes(index: StoryIndex) -> bytes:
    """
    Serialize an index to indented JSON bytes.

    The payload is ``{"v": <version>, "entries": {<id>: <entry>}}`` with
    entries in index order.
    """
    return orjson.dumps(index.to_dict(), option=orjson.OPT_INDENT_2)


def format_text(index: StoryIndex) -> str:
    out: list[str] = []
    for entry_id, entry in index.entries.items():
        out.append(f"{entry.type.value:5s} {entry_id}  {entry.import_path}")
    out.append(f"# v={index.v} entries={len(index.entries)}")
    return "\n".join(out)


def render_table(index: StoryIndex, console: Console | None = None) -> None:
    """Render the index as a rich table."""
    if console is None:
        console = Console()
    table = Table(title=f"Story index (v{index.v})")
    table.add_column("id", style="bold")
    table.add_column("type")
    table.add_column("title")
    table.add_column("name")
    table.add_column("import path", style="dim")
    for entry_id, entry in index.entries.items():
        table.add_row(entry_id, entry.type.value, entry.title, entry.name, entry.import_path)
    console.print(table)


def format_index(index: StoryIndex, fmt: OutputFormat) -> str:
    """Format an index; TABLE renders to stdout and returns an empty string."""
    if fmt == OutputFormat.JSON:
        return to_json_bytes(index).decode("utf-8")
    if fmt == OutputFormat.TABLE:
        render_table(index)
        return ""
    return format_text(index)
