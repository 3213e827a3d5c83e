"""Bundle a song with every sample it uses.

:meth:`BundlePacker.pack` produces::

    <out_folder>/<song name>/
        <song file name>.m8s
        Samples/
            <slot>_<sample file name>
            ...

Every Sampler reference in the bundled song becomes song-relative
(``Samples/<slot>_<name>``).  Samples shared by several instruments are
copied once; the slot prefix keeps same-named files coming from
different folders apart.

Nothing is created until every referenced sample has been found.  A
failure during the copy pass leaves the partially written bundle on disk;
there is no rollback.
"""

from __future__ import annotations

import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import (
    ErrorAggregator,
    FileIOFailure,
    FolderCreationError,
    MissingSample,
    SampleToolError,
)
from .paths import SEPARATOR, normalize_path, resolve
from .run_log import RunLog
from .song import Song, SongCodec, iter_samplers
from .song_io import encode_song, read_song, write_bytes
from .swap_rule import SwapRecord

SAMPLES_FOLDER = "Samples"

INVALID_CHARS = re.compile(r"[<>:\"/\\|?*\x00-\x1F]")


def sanitize_name(value: str) -> str:
    value = value.strip().rstrip(".")
    return INVALID_CHARS.sub("_", value)


class DedupMap:
    """Source sample → destination reference, for one pack operation."""

    def __init__(self) -> None:
        self._entries: Dict[Path, str] = {}

    def get(self, source: Path) -> Optional[str]:
        return self._entries.get(source)

    def record(self, source: Path, destination_ref: str) -> None:
        # first assignment wins for the rest of the operation
        self._entries.setdefault(source, destination_ref)

    def __contains__(self, source: object) -> bool:
        return source in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class BundleReport:
    song_path: Path
    bundle_dir: Optional[Path] = None
    bundled_song: Optional[Path] = None
    copied: List[Tuple[Path, Path]] = field(default_factory=list)
    reused: int = 0
    records: List[SwapRecord] = field(default_factory=list)
    error: Optional[SampleToolError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "song": str(self.song_path),
            "bundle_dir": str(self.bundle_dir) if self.bundle_dir else None,
            "bundled_song": str(self.bundled_song) if self.bundled_song else None,
            "files_copied": len(self.copied),
            "copies": [{"source": str(s), "dest": str(d)} for s, d in self.copied],
            "reused": self.reused,
            "instruments": [r.to_dict() for r in self.records],
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class BundlePacker:
    """Collect a song and its samples into a self-contained folder."""

    codec: SongCodec
    log: RunLog = field(default_factory=RunLog)

    def pack(self, song_path: Path, backup_root: Path, out_folder: Path) -> BundleReport:
        song_path = normalize_path(song_path)
        backup_root = normalize_path(backup_root)
        out_folder = normalize_path(out_folder)
        report = BundleReport(song_path=song_path)

        try:
            song = read_song(self.codec, song_path)
        except SampleToolError as exc:
            report.error = exc
            return report

        sources, error = self._verify(song, song_path, backup_root)
        if error is not None:
            report.error = error
            return report

        bundle_dir = out_folder / self._bundle_name(song, song_path)
        samples_dir = bundle_dir / SAMPLES_FOLDER
        try:
            bundle_dir.mkdir(parents=True, exist_ok=False)
            samples_dir.mkdir()
        except FileExistsError:
            report.error = FolderCreationError(bundle_dir, "already exists")
            return report
        except OSError as exc:
            report.error = FolderCreationError(bundle_dir, exc.strerror or str(exc))
            return report
        report.bundle_dir = bundle_dir
        self.log.log(f"Bundling '{song_path.name}' into {bundle_dir}")

        try:
            self._copy_samples(song, sources, samples_dir, report)
            data = encode_song(self.codec, song, song_path)
            bundled_song = bundle_dir / song_path.name
            write_bytes(bundled_song, data)
        except SampleToolError as exc:
            report.error = exc
            return report

        report.bundled_song = bundled_song
        self.log.log(
            f"Done. copied={len(report.copied)} reused={report.reused} song={bundled_song}"
        )
        return report

    def _bundle_name(self, song: Song, song_path: Path) -> str:
        return sanitize_name(song.name) or sanitize_name(song_path.stem) or "song"

    def _verify(
        self, song: Song, song_path: Path, backup_root: Path
    ) -> Tuple[Dict[int, Path], Optional[SampleToolError]]:
        """Resolve every used sample; report each missing one."""
        errors = ErrorAggregator()
        sources: Dict[int, Path] = {}
        for slot, sampler in iter_samplers(song):
            if not sampler.sample_path:
                continue
            source = normalize_path(resolve(backup_root, song_path, sampler.sample_path))
            if not source.is_file():
                errors.add(MissingSample(slot, sampler.sample_path))
                continue
            sources[slot] = source
        return sources, errors.collapse()

    def _copy_samples(
        self,
        song: Song,
        sources: Dict[int, Path],
        samples_dir: Path,
        report: BundleReport,
    ) -> None:
        dedup = DedupMap()
        for slot, sampler in iter_samplers(song):
            source = sources.get(slot)
            if source is None:
                continue
            destination_ref = dedup.get(source)
            if destination_ref is not None:
                report.reused += 1
                self.log.debug(f"  {slot:02X} reuses {destination_ref}")
            else:
                file_name = f"{slot}_{source.name}"
                destination = samples_dir / file_name
                try:
                    shutil.copy2(str(source), str(destination))
                except OSError as exc:
                    raise FileIOFailure.from_os_error(source, "copy file", exc) from exc
                destination_ref = SAMPLES_FOLDER + SEPARATOR + file_name
                dedup.record(source, destination_ref)
                report.copied.append((source, destination))
                self.log.debug(f"  {slot:02X} copied {source} -> {destination}")

            report.records.append(
                SwapRecord(slot, sampler.name, sampler.sample_path, destination_ref)
            )
            sampler.sample_path = destination_ref
