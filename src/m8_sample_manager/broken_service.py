"""Find songs whose Sampler instruments point at missing files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .discovery import DEFAULT_SONG_EXTENSION, discover_songs
from .errors import ErrorAggregator, SampleToolError
from .paths import normalize_path, resolve
from .run_log import RunLog
from .song import Song, SongCodec, iter_samplers
from .song_io import read_song


@dataclass
class BrokenSong:
    song_path: Path
    # sample reference -> slots using it, ascending
    missing: Dict[str, List[int]] = field(default_factory=dict)

    def format_lines(self) -> List[str]:
        lines = [f"== Broken song {self.song_path}"]
        for sample_path, slots in self.missing.items():
            joined = ", ".join(str(slot) for slot in slots)
            lines.append(f" * '{sample_path}' in instruments [{joined}]")
        return lines


@dataclass
class BrokenReport:
    root: Path
    songs_scanned: int = 0
    broken: List[BrokenSong] = field(default_factory=list)
    error: Optional[SampleToolError] = None

    def to_dict(self) -> dict:
        return {
            "root": str(self.root),
            "songs_scanned": self.songs_scanned,
            "broken": [
                {"song": str(b.song_path), "missing": b.missing} for b in self.broken
            ],
            "error": self.error.to_dict() if self.error else None,
        }


def missing_samples(root: Path, song_path: Path, song: Song) -> Dict[str, List[int]]:
    missing: Dict[str, List[int]] = {}
    for slot, sampler in iter_samplers(song):
        if not sampler.sample_path:
            continue
        if not resolve(root, song_path, sampler.sample_path).exists():
            missing.setdefault(sampler.sample_path, []).append(slot)
    return missing


@dataclass
class BrokenSearch:
    codec: SongCodec
    log: RunLog = field(default_factory=RunLog)
    song_extension: str = DEFAULT_SONG_EXTENSION

    def find_broken(self, root: Union[str, Path]) -> BrokenReport:
        root_path = normalize_path(root)
        report = BrokenReport(root=root_path)
        errors = ErrorAggregator()

        for song_path in discover_songs(root_path, self.song_extension):
            report.songs_scanned += 1
            try:
                song = read_song(self.codec, song_path)
            except SampleToolError as exc:
                errors.add(exc)
                continue
            missing = missing_samples(root_path, song_path, song)
            if missing:
                broken = BrokenSong(song_path, missing)
                report.broken.append(broken)
                for line in broken.format_lines():
                    self.log.log(line)

        report.error = errors.collapse()
        return report
