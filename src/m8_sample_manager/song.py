"""In-memory song model and the song codec seam.

The binary ``.m8s`` container is decoded and encoded by a pluggable
*song codec*; this package only ever sees the decoded :class:`Song`.
A codec is any object with two methods::

    class MyCodec:
        def decode(self, data: bytes) -> Song: ...   # raises SongDecodeError
        def encode(self, song: Song) -> bytes: ...   # raises SongEncodeError

``encode`` may refuse songs whose format version it cannot write; the
services treat that as an *unrepresentable* song rather than a hard
error.  Codecs are located with :func:`load_codec` from an import string
such as ``"my_m8_codec:M8Codec"``.

Instruments form a closed union: :class:`Sampler` is the only variant
that carries a sample reference, every other kind is an
:class:`OpaqueInstrument` whose payload belongs to the codec.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Protocol, Tuple, Union


class SongDecodeError(ValueError):
    """Raised by a codec when bytes are not a valid song."""


class SongEncodeError(ValueError):
    """Raised by a codec when a song cannot be written back."""


@dataclass
class Sampler:
    name: str = ""
    sample_path: str = ""
    payload: Any = None


@dataclass
class OpaqueInstrument:
    kind: str = "none"
    payload: Any = None


Instrument = Union[Sampler, OpaqueInstrument]


@dataclass
class Song:
    """Decoded song: ordered instrument list plus codec-private state."""

    name: str = ""
    version: str = ""
    instruments: List[Instrument] = field(default_factory=list)
    extra: Any = None


def iter_samplers(song: Song) -> Iterator[Tuple[int, Sampler]]:
    """Yield ``(slot, sampler)`` in ascending slot order."""
    for slot, instrument in enumerate(song.instruments):
        if isinstance(instrument, Sampler):
            yield slot, instrument


class SongCodec(Protocol):
    def decode(self, data: bytes) -> Song:
        ...

    def encode(self, song: Song) -> bytes:
        ...


def load_codec(spec: str) -> SongCodec:
    """Import ``"module:attribute"`` and return a codec instance.

    A class or factory is called without arguments; any other object is
    returned as is.
    """
    module_name, sep, attr = (spec or "").partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Codec must be given as 'module:attribute', got {spec!r}")
    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attr)
    except AttributeError:
        raise ValueError(f"Module {module_name!r} has no attribute {attr!r}") from None
    if isinstance(target, type) or not hasattr(target, "decode"):
        codec = target() if callable(target) else target
    else:
        codec = target
    if not (hasattr(codec, "decode") and hasattr(codec, "encode")):
        raise ValueError(f"{spec!r} is not a song codec (needs decode/encode)")
    return codec
