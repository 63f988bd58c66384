"""Legacy (v2) view of the index: stories only, with ``kind``/``story``/``parameters``."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping

from ..core.types import IndexEntry, StoryEntry, V2CompatEntry


def to_v2_compat(entries: Mapping[str, IndexEntry]) -> dict[str, V2CompatEntry]:
    """
    Convert sorted entries to the legacy shape.

    Docs entries are dropped. ``parameters.docsOnly`` is set for a story
    named ``Page`` that is the only entry of its title.
    """
    title_counts = Counter(entry.title for entry in entries.values())

    compat: dict[str, V2CompatEntry] = {}
    for entry_id, entry in entries.items():
        if not isinstance(entry, StoryEntry):
            continue
        compat[entry_id] = V2CompatEntry(
            id=entry.id,
            title=entry.title,
            name=entry.name,
            import_path=entry.import_path,
            tags=entry.tags,
            kind=entry.title,
            story=entry.name,
            parameters={
                "__id": entry.id,
                "docsOnly": title_counts[entry.title] == 1 and entry.name == "Page",
                "fileName": entry.import_path,
            },
        )
    return compat
