"""Read, decode and encode songs, translating codec failures."""

from __future__ import annotations

from pathlib import Path

from .errors import DecodeFailure, FileIOFailure, SongNotRepresentable
from .song import Song, SongCodec, SongDecodeError, SongEncodeError


def read_song(codec: SongCodec, song_path: Path) -> Song:
    try:
        data = Path(song_path).read_bytes()
    except OSError as exc:
        raise FileIOFailure.from_os_error(song_path, "read file", exc) from exc
    try:
        return codec.decode(data)
    except SongDecodeError as exc:
        raise DecodeFailure(song_path, str(exc)) from exc


def encode_song(codec: SongCodec, song: Song, song_path: Path) -> bytes:
    try:
        return codec.encode(song)
    except SongEncodeError as exc:
        raise SongNotRepresentable(song_path, str(exc)) from exc


def write_bytes(path: Path, data: bytes) -> None:
    try:
        Path(path).write_bytes(data)
    except OSError as exc:
        raise FileIOFailure.from_os_error(path, "write file", exc) from exc
