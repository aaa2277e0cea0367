"""Shortcut for ``python -m performance_track.cli``; the CLI lives in :mod:`performance_track.main`."""

from __future__ import annotations

from performance_track.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
