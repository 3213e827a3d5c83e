"""Sample reference resolution.

A sample reference stored in a song is a ``/``-separated string in one
of two addressing modes:

* *root-relative*: starts with ``/`` and is relative to the backup root
  (the folder mirroring the M8 SD card);
* *song-relative*: anything else, relative to the song file's folder.

An empty reference means "no sample assigned" and is never resolved.
"""

from __future__ import annotations

import enum
import os
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from .errors import PathFailure

SEPARATOR = "/"

PathLike = Union[str, Path]


class ReferenceKind(enum.Enum):
    ROOT_RELATIVE = "root-relative"
    SONG_RELATIVE = "song-relative"


def classify(sample_ref: str) -> ReferenceKind:
    if sample_ref.startswith(SEPARATOR):
        return ReferenceKind.ROOT_RELATIVE
    return ReferenceKind.SONG_RELATIVE


def resolve(root: PathLike, song_path: PathLike, sample_ref: str) -> Path:
    """Return the filesystem path a reference points to."""
    if not sample_ref:
        raise ValueError("empty sample reference has no path")
    if classify(sample_ref) is ReferenceKind.ROOT_RELATIVE:
        return Path(root).joinpath(*PurePosixPath(sample_ref.lstrip(SEPARATOR)).parts)
    return Path(song_path).parent.joinpath(*PurePosixPath(sample_ref).parts)


def normalize_path(path: PathLike, base: Optional[PathLike] = None) -> Path:
    """Absolute, lexically normalized path; the path need not exist.

    Relative paths are anchored at ``base`` (default: working directory).
    """
    raw = Path(path).expanduser()
    if not raw.is_absolute():
        raw = Path(base if base is not None else os.getcwd()) / raw
    return Path(os.path.normpath(str(raw)))


def to_root_reference(root: PathLike, path: PathLike) -> str:
    """Express ``path`` as a root-relative reference (``/a/b.wav``)."""
    root_path = normalize_path(root)
    target = normalize_path(path)
    try:
        rel = target.relative_to(root_path)
    except ValueError:
        raise PathFailure(f"not inside root '{root_path}'", target) from None
    return SEPARATOR + SEPARATOR.join(rel.parts)


def to_song_reference(song_dir: PathLike, path: PathLike) -> str:
    """Express ``path`` relative to a song folder with ``/`` separators."""
    rel = Path(path).relative_to(Path(song_dir))
    return SEPARATOR.join(rel.parts)
