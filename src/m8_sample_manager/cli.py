"""Command-line interface for M8 Sample Manager.

Each subcommand delegates to one service:

* ``bundle``        → :class:`m8_sample_manager.bundle_service.BundlePacker`
* ``prune-bundle``  → :class:`m8_sample_manager.prune_service.BundlePruner`
* ``mv``            → :class:`m8_sample_manager.move_service.BatchMover`
* ``broken-search`` → :class:`m8_sample_manager.broken_service.BrokenSearch`

Run ``python -m m8_sample_manager --help`` for usage.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .broken_service import BrokenSearch
from .bundle_service import BundlePacker
from .config_service import ConfigService
from .errors import SampleToolError, error_lines
from .move_service import BatchMover, Flags
from .prune_service import BundlePruner
from .run_log import RunLog
from .song import SongCodec, load_codec


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="m8-samples",
        description="M8 Sample Manager – keep songs and their samples consistent",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--codec",
            help="Song codec as 'module:attribute' (overrides the config file)",
        )
        subparser.add_argument(
            "--portable",
            "-p",
            action="store_true",
            help="Force portable mode (ignored if portable.flag is present)",
        )
        subparser.add_argument("--verbose", "-v", action="store_true", help="Print per-instrument details")
        subparser.add_argument("--json", action="store_true", help="Print the run report as JSON")
        subparser.add_argument("--log-file", type=Path, help="Append every log line to this file")

    sp = subparsers.add_parser("bundle", help="Copy a song and all of its samples into one folder")
    sp.add_argument("song", type=Path, help="Song file to bundle")
    sp.add_argument("root", type=Path, nargs="?", help="Backup root used by '/'-prefixed sample paths")
    sp.add_argument("out_folder", type=Path, nargs="?", help="Folder receiving the bundle")
    add_common(sp)

    sp = subparsers.add_parser("prune-bundle", help="Remove samples no longer used by a bundled song")
    sp.add_argument("song", type=Path, help="Bundled song file")
    sp.add_argument("--dry-run", action="store_true", help="Only list the files that would be removed")
    add_common(sp)

    sp = subparsers.add_parser("mv", help="Move a sample file or folder and update every song using it")
    sp.add_argument("source", metavar="from", type=Path, help="Sample file or folder to move")
    sp.add_argument("destination", metavar="to", type=Path, help="New location (relative to the root)")
    sp.add_argument("--root", type=Path, help="Backup root to scan for songs")
    sp.add_argument("--dry-run", action="store_true", help="Show rewrites without touching the disk")
    sp.add_argument(
        "--force",
        action="store_true",
        help="Write and move even if some songs cannot be rewritten",
    )
    add_common(sp)

    sp = subparsers.add_parser("broken-search", help="List songs using samples that do not exist")
    sp.add_argument("root", type=Path, nargs="?", help="Backup root to scan for songs")
    add_common(sp)

    return parser


def _resolve_codec(args: argparse.Namespace, config: Dict[str, Any]) -> SongCodec:
    spec = args.codec or config.get("codec")
    if not spec:
        raise ValueError(
            "no song codec configured; pass --codec module:attribute "
            "or set \"codec\" in config.json"
        )
    return load_codec(spec)


def _default_root(config: Dict[str, Any]) -> Path:
    return Path(config.get("backup_root") or Path.cwd()).expanduser()


def _print_errors(error: Optional[SampleToolError], prefix: str = "Error") -> None:
    for line in error_lines(error):
        print(f"{prefix}: {line}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    config_service = ConfigService(app_dir=Path.cwd())
    config = config_service.load_config(cli_portable=args.portable)
    verbose = bool(args.verbose or config.get("verbose"))
    extension = str(config.get("song_extension") or "m8s")

    try:
        codec = _resolve_codec(args, config)
    except (ValueError, ImportError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    log = RunLog(verbose=verbose, log_to_console=not args.json, log_path=args.log_file)
    try:
        if args.command == "bundle":
            root = args.root or _default_root(config)
            out_folder = args.out_folder or Path(config.get("bundle_dir") or Path.cwd()).expanduser()
            report = BundlePacker(codec, log).pack(args.song, root, out_folder)
        elif args.command == "prune-bundle":
            report = BundlePruner(codec, log).prune(args.song, dry_run=args.dry_run)
        elif args.command == "mv":
            root = args.root or _default_root(config)
            flags = Flags(dry_run=args.dry_run, force=args.force, verbose=verbose)
            mover = BatchMover(codec, log, song_extension=extension)
            report = mover.move(root, flags, args.source, args.destination)
        elif args.command == "broken-search":
            root = args.root or _default_root(config)
            report = BrokenSearch(codec, log, song_extension=extension).find_broken(root)
        else:
            print(f"Error: unrecognized command {args.command}", file=sys.stderr)
            return 1
    finally:
        log.close()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))

    if getattr(report, "warning_only", False):
        _print_errors(report.error, prefix="Warning")
        return 0
    _print_errors(report.error)
    return 0 if report.error is None else 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
