"""Command line entry point for auratrade.

This module registers the command groups defined under
:mod:`auratrade.cli.commands`.
"""
from __future__ import annotations

import sys

import typer

from .commands import auth, bridge, live

app = typer.Typer(add_completion=False, help="Utilities for running auratrade")

# Register subcommands
app.add_typer(bridge.app)
app.add_typer(auth.app)
app.add_typer(live.app)


def main() -> int:
    """Entry point used by ``python -m auratrade.cli``."""
    try:
        app(standalone_mode=False)
        return 0
    except typer.Exit as exc:
        return exc.exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
