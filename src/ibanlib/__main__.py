"""Entry point for `python -m ibanlib`."""

from __future__ import annotations

from ibanlib.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
