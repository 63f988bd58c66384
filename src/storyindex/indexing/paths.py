"""
Path resolution for stories specifiers.

Expands a specifier (directory + files glob) into the sorted list of
absolute file paths it matches. Matching uses ``pathspec`` gitwildmatch
patterns anchored at the specifier directory, so ``*.stories.json`` does not
descend into subdirectories.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from pathlib import Path

from ..core.types import Specifier
from ..utils.logging_config import get_logger
from ..utils.naming import slash

logger = get_logger()


def iter_specifier_files(specifier: Specifier, working_dir: Path) -> Iterable[Path]:
    """Yield every file below the specifier directory matched by its files glob."""
    root = (working_dir / specifier.directory).resolve()
    if not root.is_dir():
        logger.debug(f"Specifier directory does not exist: {root}")
        return

    for dirpath, dirnames, filenames in os.walk(root):
        # node_modules is never part of a stories glob
        dirnames[:] = sorted(d for d in dirnames if d != "node_modules")
        for name in filenames:
            full = Path(dirpath) / name
            relative = slash(os.path.relpath(full, root))
            if specifier.matches_relative(relative):
                yield full


def resolve_specifier_paths(
    specifier: Specifier,
    working_dir: Path,
    skip_extensions: Iterable[str] = (".storyshot",),
) -> list[str]:
    """
    Absolute paths matched by ``specifier``, sorted lexicographically.

    Files whose extension is in ``skip_extensions`` are logged and dropped.
    """
    skip = set(skip_extensions)
    paths: list[str] = []
    for path in iter_specifier_files(specifier, working_dir):
        absolute = slash(str(path))
        ext = path.suffix
        if ext in skip:
            logger.log_skipped_file(os.path.relpath(absolute, working_dir), ext)
            continue
        paths.append(absolute)
    paths.sort()
    return paths


async def resolve_all(
    specifiers: list[Specifier],
    working_dir: Path,
    skip_extensions: Iterable[str] = (".storyshot",),
) -> list[list[str]]:
    """Resolve every specifier concurrently; results follow specifier order."""
    skip = tuple(skip_extensions)
    return await asyncio.gather(
        *(
            asyncio.to_thread(resolve_specifier_paths, specifier, working_dir, skip)
            for specifier in specifiers
        )
    )
