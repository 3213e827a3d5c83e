"""Progress and diagnostic output shared by the services.

Messages go to the console (unless disabled), to an optional
``log_callback`` (used by embedding code and the tests) and to an optional
run log file.  Verbose-only lines go through :meth:`RunLog.debug`.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional


@dataclass
class RunLog:
    verbose: bool = False
    log_to_console: bool = True
    log_callback: Optional[Callable[[str], None]] = None
    log_path: Optional[Path] = None
    lines: List[str] = field(default_factory=list, init=False, repr=False)
    _handle: Any = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.log_path is not None:
            self.log_path = Path(self.log_path)
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(self.log_path, "a", encoding="utf-8", buffering=1)

    def _emit(self, msg: str, stream: Any = None) -> None:
        self.lines.append(msg)
        if self.log_to_console:
            print(msg, file=stream or sys.stdout)
        if self.log_callback is not None:
            self.log_callback(msg)
        if self._handle is not None:
            self._handle.write(msg + "\n")

    def log(self, msg: str) -> None:
        self._emit(msg)

    def debug(self, msg: str) -> None:
        if self.verbose:
            self._emit(msg)

    def warn(self, msg: str) -> None:
        self._emit(f"Warning: {msg}", stream=sys.stderr)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "RunLog":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def quiet_log() -> RunLog:
    """A log that records lines without printing them."""
    return RunLog(log_to_console=False)
