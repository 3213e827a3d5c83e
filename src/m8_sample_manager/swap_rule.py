"""Planned renames expressed as sample reference rewrites.

A :class:`FileRule` rewrites one exact reference; a :class:`DirRule`
rewrites every reference living under a folder.  Both hold root-relative
references with exactly one leading ``/``::

    >>> DirRule("/Samples/Kick", "/Drums/Kick808").try_rewrite("/Samples/Kick/808.wav")
    '/Drums/Kick808/808.wav'
    >>> DirRule("/Samples/Kick", "/Drums/Kick808").try_rewrite("/Samples/Kick2/808.wav") is None
    True

Folder rules only match on a separator boundary, so a sibling folder
that merely shares the prefix is left alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .errors import PathFailure
from .paths import SEPARATOR, normalize_path, to_root_reference


@dataclass(frozen=True)
class FileRule:
    from_ref: str
    to_ref: str

    def try_rewrite(self, sample_ref: str) -> Optional[str]:
        if sample_ref == self.from_ref:
            return self.to_ref
        return None


@dataclass(frozen=True)
class DirRule:
    from_ref: str
    to_ref: str

    def try_rewrite(self, sample_ref: str) -> Optional[str]:
        if sample_ref == self.from_ref:
            return self.to_ref
        prefix = self.from_ref.rstrip(SEPARATOR) + SEPARATOR
        if not sample_ref.startswith(prefix):
            return None
        suffix = sample_ref[len(prefix):]
        return self.to_ref.rstrip(SEPARATOR) + SEPARATOR + suffix


SwapRule = Union[FileRule, DirRule]


@dataclass(frozen=True)
class SwapRecord:
    """One rewritten Sampler instrument."""

    slot: int
    instrument_name: str
    original_reference: str
    new_reference: str

    def format(self) -> str:
        return (
            f" - {self.slot} {self.instrument_name} "
            f"\"{self.original_reference}\" -> \"{self.new_reference}\""
        )

    def to_dict(self) -> dict:
        return {
            "slot": self.slot,
            "instrument_name": self.instrument_name,
            "original_reference": self.original_reference,
            "new_reference": self.new_reference,
        }


def build_swap_rule(
    root: Union[str, Path],
    source: Union[str, Path],
    destination: Union[str, Path],
) -> SwapRule:
    """Plan the rename of ``source`` to ``destination`` inside ``root``.

    ``source`` is taken relative to the working directory; a relative
    ``destination`` is taken relative to ``root``.
    """
    root_path = normalize_path(root)
    source_path = normalize_path(source)
    destination_path = normalize_path(destination, base=root_path)

    if not source_path.exists():
        raise PathFailure("does not exist", source_path)
    if source_path == root_path:
        raise PathFailure("cannot move the backup root itself", source_path)

    from_ref = to_root_reference(root_path, source_path)
    to_ref = to_root_reference(root_path, destination_path)
    if to_ref == SEPARATOR:
        raise PathFailure("destination cannot be the backup root itself", destination_path)
    if destination_path == source_path or source_path in destination_path.parents:
        raise PathFailure("destination is inside the source", destination_path)

    if source_path.is_dir():
        return DirRule(from_ref, to_ref)
    if source_path.is_file():
        return FileRule(from_ref, to_ref)
    raise PathFailure("neither file nor directory", source_path)
