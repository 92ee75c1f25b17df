"""Bounded sliding window of the most recent ticks."""

from __future__ import annotations

from collections import deque

from ..types import Tick


class TickBuffer:
    """Time ordered FIFO of ticks capped at ``maxlen`` entries.

    Appending beyond the cap evicts from the front.  Reads always return a
    full copy so callers never observe a partially updated window.
    """

    def __init__(self, maxlen: int = 200) -> None:
        if maxlen <= 0:
            raise ValueError("maxlen must be positive")
        self.maxlen = maxlen
        self._ticks: deque[Tick] = deque(maxlen=maxlen)

    def append(self, tick: Tick) -> None:
        self._ticks.append(tick)

    def reset(self) -> None:
        self._ticks.clear()

    def snapshot(self) -> list[Tick]:
        return list(self._ticks)

    def latest(self) -> Tick | None:
        return self._ticks[-1] if self._ticks else None

    def __len__(self) -> int:
        return len(self._ticks)
