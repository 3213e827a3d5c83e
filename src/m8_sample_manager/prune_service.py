"""Remove samples a bundle no longer uses.

A bundle must be self-contained: every Sampler reference in its song is
song-relative.  Files under ``Samples/`` that no instrument references
are deletion candidates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from .bundle_service import SAMPLES_FOLDER
from .errors import (
    ErrorAggregator,
    FileIOFailure,
    SampleInBundleNotRelative,
    SampleToolError,
)
from .paths import ReferenceKind, classify, normalize_path, to_song_reference
from .run_log import RunLog
from .song import Song, SongCodec, iter_samplers
from .song_io import read_song


@dataclass
class PruneReport:
    song_path: Path
    dry_run: bool = False
    candidates: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    error: Optional[SampleToolError] = None

    @property
    def clean(self) -> bool:
        return self.error is None and not self.candidates

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "song": str(self.song_path),
            "dry_run": self.dry_run,
            "clean": self.clean,
            "candidates": [str(p) for p in self.candidates],
            "removed": [str(p) for p in self.removed],
            "error": self.error.to_dict() if self.error else None,
        }


def referenced_samples(song: Song) -> Set[str]:
    """Song-relative references of a bundled song.

    Raises :class:`SampleInBundleNotRelative` on the first root-relative one.
    """
    referenced: Set[str] = set()
    for slot, sampler in iter_samplers(song):
        if not sampler.sample_path:
            continue
        if classify(sampler.sample_path) is ReferenceKind.ROOT_RELATIVE:
            raise SampleInBundleNotRelative(slot, sampler.sample_path)
        referenced.add(sampler.sample_path)
    return referenced


@dataclass
class BundlePruner:
    codec: SongCodec
    log: RunLog = field(default_factory=RunLog)

    def prune(self, song_path: Path, dry_run: bool = False) -> PruneReport:
        song_path = normalize_path(song_path)
        report = PruneReport(song_path=song_path, dry_run=dry_run)
        song_dir = song_path.parent

        try:
            song = read_song(self.codec, song_path)
            referenced = referenced_samples(song)
            present = self._list_samples(song_dir / SAMPLES_FOLDER)
        except SampleToolError as exc:
            report.error = exc
            return report

        report.candidates = [
            path for path in present if to_song_reference(song_dir, path) not in referenced
        ]

        if not report.candidates:
            self.log.log("Sample folder is clean, nothing to do!")
            return report

        if dry_run:
            self.log.log("Extra samples to be removed:")
            for path in report.candidates:
                self.log.log(f" * '{path}'")
            return report

        errors = ErrorAggregator()
        for path in report.candidates:
            self.log.log(f"Removing '{path}'")
            try:
                path.unlink()
            except OSError as exc:
                errors.add(FileIOFailure.from_os_error(path, "remove file", exc))
                continue
            report.removed.append(path)
        report.error = errors.collapse()
        return report

    def _list_samples(self, samples_dir: Path) -> List[Path]:
        if not samples_dir.is_dir():
            raise FileIOFailure(samples_dir, "read folder", "not a directory")
        try:
            return sorted(p for p in samples_dir.rglob("*") if p.is_file())
        except OSError as exc:
            raise FileIOFailure.from_os_error(samples_dir, "read folder", exc) from exc
