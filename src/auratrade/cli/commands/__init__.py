"""Subcommands for the auratrade CLI."""

from __future__ import annotations

# Each module exposes its own ``app`` Typer instance.  They are imported in
# :mod:`auratrade.cli.main` and registered with ``app.add_typer`` so their
# commands are available at the top level CLI.
