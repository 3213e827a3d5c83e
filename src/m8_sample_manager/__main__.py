# src/m8_sample_manager/__main__.py
from __future__ import annotations


def main() -> int:
    """Module entrypoint: ``python -m m8_sample_manager <command>``."""
    from m8_sample_manager.cli import main as cli_main

    return int(cli_main())


if __name__ == "__main__":
    raise SystemExit(main())
