"""Configuration management for M8 Sample Manager.

This module finds and loads the optional ``config.json`` holding user
defaults (backup root, bundle output folder, song codec).  It supports
both AppData and portable installation modes and validates the file
against ``schemas/config.schema.json`` with :mod:`jsonschema`.

Portable mode is controlled via a ``portable.flag`` file located in the
application directory or by passing ``--portable`` to the CLI.  The flag
file takes precedence over the command line.

Example usage::

    from m8_sample_manager.config_service import ConfigService

    config_service = ConfigService(app_dir=Path.cwd())
    cfg = config_service.load_config()
    backup_root = Path(cfg.get("backup_root") or Path.cwd())

Recognised keys:

``backup_root``
    Folder mirroring the M8 SD card; root-relative references resolve here.
``bundle_dir``
    Default output folder for ``bundle``.
``codec``
    Import string ``"module:attribute"`` of the song codec.
``song_extension``
    Song file extension searched by batch commands (default ``m8s``).
``verbose``
    Print per-instrument details.
"""

from __future__ import annotations

import json
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import jsonschema

from .discovery import DEFAULT_SONG_EXTENSION

APP_NAME = "M8SampleManager"
PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_CONFIG: Dict[str, Any] = {
    "song_extension": DEFAULT_SONG_EXTENSION,
    "verbose": False,
}


def _config_home(app_name: str = APP_NAME) -> Path:
    """Per-user config folder: ``%APPDATA%`` on Windows, XDG elsewhere."""
    if platform.system().lower() == "windows":
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / app_name


def _read_json(path: Path) -> Any:
    if not path.is_file():
        return None
    return json.loads(path.read_text(encoding="utf-8"))


def _check_config(data: Any, schema_path: Path) -> None:
    schema = _read_json(schema_path)
    if schema is None:
        return
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc.message}") from exc


@dataclass
class ConfigService:
    """Locate and read the tool configuration."""

    app_dir: Path
    portable_flag_filename: str = "portable.flag"
    config_filename: str = "config.json"
    schema_path: Path = PACKAGE_DIR / "schemas" / "config.schema.json"

    def __post_init__(self) -> None:
        self.app_dir = Path(self.app_dir)

    def detect_mode(self, cli_portable: bool = False) -> bool:
        """``True`` for portable mode; a ``portable.flag`` file always wins."""
        return cli_portable or (self.app_dir / self.portable_flag_filename).exists()

    def get_config_path(self, cli_portable: bool = False) -> Path:
        folder = self.app_dir if self.detect_mode(cli_portable) else _config_home()
        return folder / self.config_filename

    def load_config(self, cli_portable: bool = False) -> Dict[str, Any]:
        """Return the user's settings merged over :data:`DEFAULT_CONFIG`.

        A file that fails to parse or validate is reported and ignored.
        """
        cfg_path = self.get_config_path(cli_portable)
        cfg = dict(DEFAULT_CONFIG)
        try:
            data = _read_json(cfg_path)
            if data is not None:
                _check_config(data, self.schema_path)
                cfg.update(data)
        except (ValueError, OSError) as exc:
            print(f"Warning: {cfg_path}: {exc}. Falling back to defaults.")
        return cfg
