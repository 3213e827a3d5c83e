"""Rename a sample file or folder and rewrite every song that uses it.

:meth:`BatchMover.move` runs in three phases:

1. *plan*: normalize paths and build the :class:`~.swap_rule.SwapRule`;
2. *rewrite*: scan every song under the root, rewrite matching Sampler
   references in memory and re-encode them;
3. *commit*: write the rewritten songs, then rename the sample on disk.

Hard rules (tests):

- dry-run never touches the disk, the rename included;
- rewritten songs are written only when every song could be read,
  decoded and re-encoded, or when ``force`` is set;
- a song that fails to read, decode or encode never stops the scan;
- a destination inside the source is refused before anything is written;
- with errors and without ``force`` the sample is not renamed, so no
  reference is left pointing at a path that no longer exists;
- with errors and ``force`` the sample is renamed and the errors are
  returned as warnings; the report never claims a clean success.
"""

from __future__ import annotations

import enum
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .discovery import DEFAULT_SONG_EXTENSION, discover_songs
from .errors import (
    ErrorAggregator,
    FileIOFailure,
    PathFailure,
    SampleToolError,
    SongNotRepresentable,
    combine,
)
from .paths import normalize_path
from .run_log import RunLog
from .song import SongCodec, iter_samplers
from .song_io import encode_song, read_song, write_bytes
from .swap_rule import SwapRecord, SwapRule, build_swap_rule


@dataclass(frozen=True)
class Flags:
    dry_run: bool = False
    force: bool = False
    verbose: bool = False


class OutcomeKind(enum.Enum):
    NO_MATCH = "no-match"
    TOUCHED = "touched"
    UNREPRESENTABLE = "unrepresentable"
    FAILED = "failed"


@dataclass
class SongOutcome:
    song_path: Path
    kind: OutcomeKind
    records: List[SwapRecord] = field(default_factory=list)
    data: Optional[bytes] = None
    error: Optional[SampleToolError] = None
    written: bool = False

    def to_dict(self) -> dict:
        return {
            "song": str(self.song_path),
            "outcome": self.kind.value,
            "written": self.written,
            "instruments": [r.to_dict() for r in self.records],
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class MoveReport:
    source: Path
    destination: Path
    dry_run: bool = False
    forced: bool = False
    rule: Optional[SwapRule] = None
    outcomes: List[SongOutcome] = field(default_factory=list)
    renamed: bool = False
    error: Optional[SampleToolError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def warning_only(self) -> bool:
        """Errors occurred but a forced rename still went through."""
        return self.error is not None and self.renamed and self.forced

    @property
    def records(self) -> List[SwapRecord]:
        return [r for outcome in self.outcomes for r in outcome.records]

    def outcomes_of(self, kind: OutcomeKind) -> List[SongOutcome]:
        return [o for o in self.outcomes if o.kind is kind]

    def to_dict(self) -> dict:
        return {
            "source": str(self.source),
            "destination": str(self.destination),
            "dry_run": self.dry_run,
            "forced": self.forced,
            "rule": type(self.rule).__name__ if self.rule else None,
            "renamed": self.renamed,
            "songs_touched": len(self.outcomes_of(OutcomeKind.TOUCHED)),
            "songs_unrepresentable": len(self.outcomes_of(OutcomeKind.UNREPRESENTABLE)),
            "songs_failed": len(self.outcomes_of(OutcomeKind.FAILED)),
            "songs": [o.to_dict() for o in self.outcomes if o.kind is not OutcomeKind.NO_MATCH],
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class BatchMover:
    codec: SongCodec
    log: RunLog = field(default_factory=RunLog)
    song_extension: str = DEFAULT_SONG_EXTENSION

    def move(
        self,
        root: Union[str, Path],
        flags: Flags,
        source: Union[str, Path],
        destination: Union[str, Path],
    ) -> MoveReport:
        root_path = normalize_path(root)
        source_path = normalize_path(source)
        destination_path = normalize_path(destination, base=root_path)
        report = MoveReport(
            source=source_path,
            destination=destination_path,
            dry_run=flags.dry_run,
            forced=flags.force,
        )

        debug = self.log.log if flags.verbose else self.log.debug

        debug(f"Using backup at location: {root_path}")
        debug(f" * moving source {source_path}")
        debug(f" * to {destination_path}")

        try:
            rule = build_swap_rule(root_path, source_path, destination_path)
            if destination_path.exists():
                raise PathFailure("destination already exists", destination_path)
        except SampleToolError as exc:
            report.error = exc
            return report
        report.rule = rule

        errors = ErrorAggregator()
        report.outcomes = self.scan(root_path, rule, keep_data=not flags.dry_run)
        for outcome in report.outcomes:
            errors.add(outcome.error)
            for record in outcome.records:
                self.log.log(record.format())

        blocked = report.outcomes_of(OutcomeKind.UNREPRESENTABLE) + report.outcomes_of(OutcomeKind.FAILED)
        for outcome in blocked:
            if flags.force:
                self.log.warn(f"'{outcome.song_path}' keeps its old references (forced move)")
            else:
                self.log.warn(f"'{outcome.song_path}' cannot be rewritten, no song will be written")

        if not flags.dry_run and (not blocked or flags.force):
            for outcome in report.outcomes_of(OutcomeKind.TOUCHED):
                try:
                    write_bytes(outcome.song_path, outcome.data or b"")
                except SampleToolError as exc:
                    outcome.error = exc
                    errors.add(exc)
                    continue
                outcome.written = True
                debug(f"Rewrote {outcome.song_path}")

        report.error = errors.collapse()
        if flags.dry_run:
            return report
        if errors and not flags.force:
            self.log.warn(f"'{source_path}' was not moved because some songs could not be updated")
            return report

        try:
            self._rename(source_path, destination_path)
        except SampleToolError as exc:
            report.error = combine(report.error, exc)
        else:
            report.renamed = True
            self.log.log(f"Moved '{source_path}' -> '{destination_path}'")
        return report

    def scan(self, root: Union[str, Path], rule: SwapRule, keep_data: bool = True) -> List[SongOutcome]:
        """Rewrite every song under ``root`` in memory, writing nothing."""
        outcomes: List[SongOutcome] = []
        for song_path in discover_songs(Path(root), self.song_extension):
            outcomes.append(self._rewrite_song(song_path, rule, keep_data))
        return outcomes

    def _rewrite_song(self, song_path: Path, rule: SwapRule, keep_data: bool) -> SongOutcome:
        try:
            song = read_song(self.codec, song_path)
        except SampleToolError as exc:
            return SongOutcome(song_path, OutcomeKind.FAILED, error=exc)

        records: List[SwapRecord] = []
        for slot, sampler in iter_samplers(song):
            new_ref = rule.try_rewrite(sampler.sample_path)
            if new_ref is None:
                continue
            records.append(SwapRecord(slot, sampler.name, sampler.sample_path, new_ref))
            sampler.sample_path = new_ref

        if not records:
            return SongOutcome(song_path, OutcomeKind.NO_MATCH)

        try:
            data = encode_song(self.codec, song, song_path)
        except SongNotRepresentable as exc:
            return SongOutcome(song_path, OutcomeKind.UNREPRESENTABLE, records=records, error=exc)

        return SongOutcome(
            song_path,
            OutcomeKind.TOUCHED,
            records=records,
            data=data if keep_data else None,
        )

    def _rename(self, source: Path, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(destination))
        except OSError as exc:
            raise FileIOFailure.from_os_error(source, "rename", exc) from exc
