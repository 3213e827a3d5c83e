"""M8 Sample Manager package

Keeps Dirtywave M8 song files and the sample files they reference
consistent: bundle a song with its samples, prune unused samples from a
bundle, move samples while rewriting every song that uses them, and find
songs with broken sample references.

Decoding the binary song container is delegated to a pluggable song
codec (see :mod:`m8_sample_manager.song`).  Public classes are
re-exported here for convenience.
"""

from .broken_service import BrokenSearch  # noqa: F401
from .bundle_service import BundlePacker, DedupMap  # noqa: F401
from .config_service import ConfigService  # noqa: F401
from .errors import CompositeError, ErrorAggregator, SampleToolError  # noqa: F401
from .move_service import BatchMover, Flags  # noqa: F401
from .prune_service import BundlePruner  # noqa: F401
from .song import OpaqueInstrument, Sampler, Song, SongCodec  # noqa: F401
from .swap_rule import DirRule, FileRule, build_swap_rule  # noqa: F401

__all__ = [
    "BatchMover",
    "BrokenSearch",
    "BundlePacker",
    "BundlePruner",
    "CompositeError",
    "ConfigService",
    "DedupMap",
    "DirRule",
    "ErrorAggregator",
    "FileRule",
    "Flags",
    "OpaqueInstrument",
    "SampleToolError",
    "Sampler",
    "Song",
    "SongCodec",
    "build_swap_rule",
]
