"""Error taxonomy and aggregation for M8 Sample Manager.

Every failure the services can report derives from
:class:`SampleToolError`.  Errors are raised inside per-file helpers and
collected by the batch drivers into an :class:`ErrorAggregator`, which
never nests composites and collapses to ``None``, a single error or a
:class:`CompositeError`::

    errors = ErrorAggregator()
    for song_path in songs:
        try:
            process(song_path)
        except SampleToolError as exc:
            errors.add(exc)
    return errors.collapse()

Each error renders as exactly one line via ``str()``; use
:func:`error_lines` to print a composite one line per nested error.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

PathLike = Union[str, Path]


class SampleToolError(Exception):
    """Base class of every reportable failure."""

    def to_dict(self) -> dict:
        return {"type": type(self).__name__, "message": str(self)}


class DecodeFailure(SampleToolError):
    """A file is not a valid song container."""

    def __init__(self, path: PathLike, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Can't parse M8 file '{self.path}': {reason}")


class FileIOFailure(SampleToolError):
    """Open/read/write/copy/delete/rename failed at the OS level."""

    def __init__(self, path: PathLike, operation: str, reason: str) -> None:
        self.path = Path(path)
        self.operation = operation
        self.reason = reason
        super().__init__(f"Cannot {operation} '{self.path}': {reason}")

    @classmethod
    def from_os_error(cls, path: PathLike, operation: str, exc: OSError) -> "FileIOFailure":
        return cls(path, operation, exc.strerror or str(exc))


class FolderCreationError(FileIOFailure):
    """The bundle output folder could not be created (or already exists)."""

    def __init__(self, path: PathLike, reason: str) -> None:
        super().__init__(path, "create folder", reason)


class PathFailure(SampleToolError):
    """Invalid path: outside the declared root, missing, or of the wrong kind."""

    def __init__(self, reason: str, path: Optional[PathLike] = None) -> None:
        self.reason = reason
        self.path = Path(path) if path is not None else None
        if self.path is None:
            super().__init__(f"Invalid path: {reason}")
        else:
            super().__init__(f"Invalid path '{self.path}': {reason}")


class IntegrityFailure(SampleToolError):
    """A song's sample references are inconsistent with the filesystem."""

    def __init__(self, slot: int, sample_path: str, message: str) -> None:
        self.slot = slot
        self.sample_path = sample_path
        super().__init__(message)


class MissingSample(IntegrityFailure):
    def __init__(self, slot: int, sample_path: str) -> None:
        super().__init__(
            slot,
            sample_path,
            f"Missing sample '{sample_path}' used by instrument {slot:02X}",
        )


class SampleInBundleNotRelative(IntegrityFailure):
    def __init__(self, slot: int, sample_path: str) -> None:
        super().__init__(
            slot,
            sample_path,
            f"Sample '{sample_path}' of instrument {slot:02X} is not relative to the bundle",
        )


class SongNotRepresentable(SampleToolError):
    """The codec decoded a song but cannot encode it back."""

    def __init__(self, path: PathLike, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot write song '{self.path}': {reason}")


class CompositeError(SampleToolError):
    """Two or more failures from one operation, always flat."""

    def __init__(self, errors: Iterable[SampleToolError]) -> None:
        self.errors: Tuple[SampleToolError, ...] = tuple(errors)
        super().__init__(f"{len(self.errors)} errors")

    def __iter__(self) -> Iterator[SampleToolError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {
            "type": type(self).__name__,
            "message": str(self),
            "errors": [err.to_dict() for err in self.errors],
        }


class ErrorAggregator:
    """Collect failures from a batch without halting it."""

    def __init__(self) -> None:
        self._errors: List[SampleToolError] = []

    def add(self, error: Optional[SampleToolError]) -> None:
        if error is None:
            return
        if isinstance(error, CompositeError):
            for inner in error.errors:
                self.add(inner)
        else:
            self._errors.append(error)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    @property
    def errors(self) -> List[SampleToolError]:
        return list(self._errors)

    def collapse(self) -> Optional[SampleToolError]:
        """Return ``None``, the sole error unwrapped, or a flat composite."""
        if not self._errors:
            return None
        if len(self._errors) == 1:
            return self._errors[0]
        return CompositeError(self._errors)


def combine(
    first: Optional[SampleToolError], second: Optional[SampleToolError]
) -> Optional[SampleToolError]:
    """Merge two optional errors with the aggregator's collapsing rules."""
    aggregator = ErrorAggregator()
    aggregator.add(first)
    aggregator.add(second)
    return aggregator.collapse()


def error_lines(error: Optional[SampleToolError]) -> List[str]:
    if error is None:
        return []
    if isinstance(error, CompositeError):
        return [str(inner) for inner in error.errors]
    return [str(error)]
