"""Module entry point for ``python -m cli``; runs the stash CLI."""

from __future__ import annotations

from cli.main import main


if __name__ == "__main__":
    raise SystemExit(main())
