"""Locate song files under a backup root."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

DEFAULT_SONG_EXTENSION = "m8s"
DEFAULT_IGNORE_RULES = ("__MACOSX", ".DS_Store", "._")


def should_ignore(name: str, ignore_rules: Iterable[str] = DEFAULT_IGNORE_RULES) -> bool:
    for rule in ignore_rules:
        if name == rule or name.startswith(rule):
            return True
    return False


def discover_songs(
    root: Path,
    extension: str = DEFAULT_SONG_EXTENSION,
    ignore_rules: Iterable[str] = DEFAULT_IGNORE_RULES,
) -> List[Path]:
    """Return every song file under ``root``, sorted for reproducible reports.

    macOS metadata (``__MACOSX`` folders, ``._`` resource forks) is skipped
    since SD cards written from a Mac are full of them.
    """
    rules = tuple(ignore_rules)
    pattern = f"*.{extension.lstrip('.')}"
    songs: List[Path] = []
    for candidate in Path(root).rglob(pattern):
        rel_parts = candidate.relative_to(root).parts
        if any(should_ignore(part, rules) for part in rel_parts):
            continue
        if candidate.is_file():
            songs.append(candidate)
    return sorted(songs)
