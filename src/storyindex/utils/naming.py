"""
Identifier, title and name helpers.

Every index entry is keyed by an identifier derived from its title and name,
and titles are derived from the file location when the file does not
declare one. These helpers are pure string functions.

Functions:
    slash: Convert a path to forward slashes
    normalize_story_path: Prefix a relative path with ``./``
    to_import_path: Absolute path -> ``./``-relative import path
    sanitize: Lowercase, dash separated identifier segment
    to_id: Identifier for a ``(title, name)`` pair
    user_or_auto_title: Title from a user override or from the file location
    auto_name: Default name for a docs entry attached to a stories file
"""

from __future__ import annotations

import os
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.types import Specifier

_SANITIZE_RE = re.compile(r"""[\s’–—―′¿'`~!@#$%^&*()_|+\-=?;:",.<>{}\[\]\\/]""")
_DASHES_RE = re.compile(r"-+")
_INDEX_RE = re.compile(r"^index$", re.IGNORECASE)


def slash(path: str) -> str:
    return path.replace("\\", "/")


def normalize_story_path(relative_path: str) -> str:
    """Make a relative path explicit, e.g. ``src/a.py`` -> ``./src/a.py``."""
    if os.path.isabs(relative_path):
        return relative_path
    if relative_path.startswith("." + os.sep) or relative_path.startswith("./"):
        return relative_path
    if relative_path.startswith(".." + os.sep) or relative_path.startswith("../"):
        return relative_path
    return f".{os.sep}{relative_path}"


def to_import_path(absolute_path: str, working_dir: str) -> str:
    """Import path of a file: forward slashes, relative to ``working_dir``."""
    return slash(normalize_story_path(os.path.relpath(absolute_path, working_dir)))


def sanitize(part: str) -> str:
    """Turn a title or name into an identifier segment."""
    return _DASHES_RE.sub("-", _SANITIZE_RE.sub("-", part.lower())).strip("-")


def _sanitize_safe(part: str, kind: str) -> str:
    sanitized = sanitize(part)
    if sanitized == "":
        raise ValueError(f"Invalid {kind} '{part}', must include alphanumeric characters")
    return sanitized


def to_id(title: str, name: str | None = None) -> str:
    """Identifier for an entry, e.g. ``("Atoms/Button", "Primary")`` -> ``atoms-button--primary``."""
    if name is None:
        return _sanitize_safe(title, "kind")
    return f"{_sanitize_safe(title, 'kind')}--{_sanitize_safe(name, 'name')}"


def _path_join(parts: list[str]) -> str:
    return re.sub(r"/+", "/", "/".join(parts))


def _strip_extension(parts: list[str]) -> list[str]:
    parts = list(parts)
    last = parts[-1]
    dot = last.find(".")
    parts[-1] = last[:dot] if dot > 0 else last
    if parts and parts[0] == "":
        parts = parts[1:]
    return parts


def _remove_redundant_filename(parts: list[str]) -> list[str]:
    kept: list[str] = []
    previous: str | None = None
    for index, value in enumerate(parts):
        is_last = index == len(parts) - 1
        if is_last and (value == previous or _INDEX_RE.match(value)):
            continue
        kept.append(value)
        previous = value
    return kept


def user_or_auto_title(
    import_path: str, specifier: Specifier, user_title: str | None = None
) -> str | None:
    """
    Title for a file matched by ``specifier``.

    A user supplied title is only prefixed with the specifier's title prefix.
    Without one, the title is the file location below the specifier
    directory with extensions, a trailing ``index`` segment and a trailing
    segment repeating its parent removed.

    Returns None when ``import_path`` is not matched by the specifier.
    """
    normalized = slash(import_path)
    if not specifier.matches_import_path(normalized):
        return None

    prefix = specifier.title_prefix
    if user_title:
        return slash(_path_join([prefix, user_title])) if prefix else user_title

    directory = slash(specifier.directory)
    suffix = normalized[len(directory):] if normalized.startswith(directory) else normalized
    parts = slash(_path_join([prefix, suffix])).split("/")
    parts = _remove_redundant_filename(_strip_extension(parts))
    return "/".join(parts)


def auto_name(docs_import_path: str, stories_import_path: str, default_name: str) -> str:
    """Name of a docs entry attached to a stories file.

    The default name when both files share a base name, otherwise the docs
    file's base name.
    """
    docs_base = PurePosixPath(slash(docs_import_path)).name.split(".")[0]
    stories_base = PurePosixPath(slash(stories_import_path)).name.split(".")[0]
    if docs_base == stories_base:
        return default_name
    return docs_base
