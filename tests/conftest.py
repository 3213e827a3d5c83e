"""Shared fixtures: a JSON stand-in for the binary song codec and WAV helpers."""

import json
import sys
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
import pytest
import soundfile as sf

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from m8_sample_manager.song import (  # noqa: E402
    OpaqueInstrument,
    Sampler,
    Song,
    SongDecodeError,
    SongEncodeError,
)

# Songs with this version decode fine but cannot be written back.
UNWRITABLE_VERSION = "legacy"


class JsonSongCodec:
    """Stores songs as JSON; behaves like the binary codec for the services."""

    def decode(self, data: bytes) -> Song:
        try:
            raw = json.loads(data.decode("utf-8"))
            instruments = []
            for entry in raw["instruments"]:
                if entry["kind"] == "sampler":
                    instruments.append(Sampler(entry["name"], entry["sample_path"]))
                else:
                    instruments.append(OpaqueInstrument(entry["kind"], entry.get("payload")))
            return Song(raw["name"], raw.get("version", "4.0"), instruments, raw.get("extra"))
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
            raise SongDecodeError(f"not a song: {exc}") from exc

    def encode(self, song: Song) -> bytes:
        if song.version == UNWRITABLE_VERSION:
            raise SongEncodeError(f"cannot write song version {song.version}")
        instruments = []
        for instrument in song.instruments:
            if isinstance(instrument, Sampler):
                instruments.append(
                    {"kind": "sampler", "name": instrument.name, "sample_path": instrument.sample_path}
                )
            else:
                instruments.append({"kind": instrument.kind, "payload": instrument.payload})
        raw = {"name": song.name, "version": song.version, "instruments": instruments, "extra": song.extra}
        return json.dumps(raw, indent=1).encode("utf-8")


@pytest.fixture
def codec() -> JsonSongCodec:
    return JsonSongCodec()


@pytest.fixture
def make_song(codec: JsonSongCodec) -> Callable[..., Path]:
    """Write a song file; ``samplers`` maps slot -> (name, sample_path)."""

    def _make(
        path: Path,
        samplers: dict,
        name: str = "SONG",
        version: str = "4.0",
        opaque_slots: Optional[List[int]] = None,
    ) -> Path:
        size = max(list(samplers) + list(opaque_slots or []) + [0]) + 1
        instruments = [OpaqueInstrument("none") for _ in range(size)]
        for slot in opaque_slots or []:
            instruments[slot] = OpaqueInstrument("wavsynth", {"shape": slot})
        for slot, (inst_name, sample_path) in samplers.items():
            instruments[slot] = Sampler(inst_name, sample_path)
        song = Song(name, version, instruments, {"chains": [1, 2, 3]})
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(codec.encode(song) if version != UNWRITABLE_VERSION else _raw(song))
        return path

    def _raw(song: Song) -> bytes:
        # encode() refuses unwritable versions, so build the JSON directly
        writable = Song(song.name, "4.0", song.instruments, song.extra)
        raw = json.loads(codec.encode(writable).decode("utf-8"))
        raw["version"] = song.version
        return json.dumps(raw).encode("utf-8")

    return _make


@pytest.fixture
def read_song(codec: JsonSongCodec) -> Callable[[Path], Song]:
    def _read(path: Path) -> Song:
        return codec.decode(path.read_bytes())

    return _read


def generate_sine(duration: float, sr: int = 22050, freq: float = 60.0) -> np.ndarray:
    t = np.linspace(0.0, duration, int(sr * duration), False)
    return np.sin(2 * np.pi * freq * t) * np.exp(-t * 4.0)


@pytest.fixture
def write_wav() -> Callable[..., Path]:
    def _write(path: Path, freq: float = 60.0, duration: float = 0.25, sr: int = 22050) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        sf.write(str(path), generate_sine(duration, sr, freq), sr)
        return path

    return _write
