"""Helpers for Fyers style instrument identifiers.

Fyers addresses instruments as ``EXCHANGE:SYMBOL-SERIES``, e.g.
``NSE:RELIANCE-EQ`` for an equity or ``NSE:NIFTY50-INDEX`` for an index.
Human facing text (headlines, prompts) uses the bare symbol.

Examples
--------
>>> display_name("NSE:NIFTY50-INDEX")
'NIFTY50'
>>> display_name("bse:tcs-eq")
'tcs'
>>> resolve("reliance")
'NSE:RELIANCE-EQ'
"""
from __future__ import annotations

import re

__all__ = ["INSTRUMENTS", "display_name", "resolve"]

# Shortcuts accepted by the CLI and the trading session
INSTRUMENTS: dict[str, str] = {
    "nifty": "NSE:NIFTY50-INDEX",
    "banknifty": "NSE:NIFTYBANK-INDEX",
    "reliance": "NSE:RELIANCE-EQ",
    "tcs": "NSE:TCS-EQ",
    "sbin": "NSE:SBIN-EQ",
    "infy": "NSE:INFY-EQ",
}

_DECORATIONS = re.compile(r"NSE:|BSE:|-EQ|-INDEX", re.IGNORECASE)


def display_name(instrument: str) -> str:
    """Strip exchange prefix and series suffix from ``instrument``."""
    return _DECORATIONS.sub("", instrument)


def resolve(instrument: str) -> str:
    """Return the full identifier for a shortcut, or ``instrument`` unchanged."""
    return INSTRUMENTS.get(instrument.lower(), instrument)
