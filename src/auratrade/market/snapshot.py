from __future__ import annotations

from ..types import MarketSnapshot, OHLCV


class SnapshotStore:
    """Holds only the latest depth/OHLCV snapshot; updates replace it wholesale."""

    def __init__(self) -> None:
        self._current: MarketSnapshot | None = None

    def replace(self, snapshot: MarketSnapshot) -> None:
        self._current = snapshot

    def reset(self) -> None:
        self._current = None

    @property
    def current(self) -> MarketSnapshot | None:
        return self._current

    @property
    def ohlcv(self) -> OHLCV | None:
        return self._current.ohlcv if self._current is not None else None
