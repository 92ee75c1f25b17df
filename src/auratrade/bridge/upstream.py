# src/auratrade/bridge/upstream.py
"""Upstream broker push-feeds.

An :class:`UpstreamFeed` is bound to one bearer token and yields normalised
:class:`UpstreamEvent` objects for a single instrument.  The bridge owns the
feed's lifetime; feeds never reconnect on their own.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Iterable
from urllib.parse import urlencode

import websockets
from pydantic import ValidationError

from ..config import settings
from ..types import MarketDepthEntry, MarketSnapshot, OHLCV, Tick

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamEvent:
    kind: str  # "tick" | "snapshot" | "status"
    data: Any

    @classmethod
    def status(cls, state: str, detail: str | None = None) -> "UpstreamEvent":
        return cls("status", {"state": state, "detail": detail})


class UpstreamFeed(ABC):
    """Base class for broker feeds."""

    name: str = "upstream"

    @abstractmethod
    def stream(self, instrument: str) -> AsyncIterator[UpstreamEvent]:
        """Connect, subscribe to ``instrument`` and yield events until closed."""

    async def close(self) -> None:
        """Release resources held outside of :meth:`stream`."""


# ----------------------------------------------------------------------
# Fyers message mapping
def map_tick(msg: dict) -> Tick | None:
    """Map a Fyers symbol update to a :class:`Tick`.

    Only messages carrying ``ltp`` are ticks.  Fyers timestamps are in
    seconds; ticks use milliseconds.
    """

    ltp = msg.get("ltp")
    if ltp is None:
        return None
    ts = msg.get("timestamp") or msg.get("last_traded_time")
    ts_ms = int(float(ts) * 1000) if ts else int(time.time() * 1000)
    return Tick(
        timestamp=ts_ms,
        price=float(ltp),
        volume=int(msg.get("vol_traded_today") or 0),
    )


def _levels(levels: Iterable[dict]) -> list[MarketDepthEntry]:
    return [
        MarketDepthEntry(
            price=float(d["price"]),
            quantity=float(d.get("volume") or 0),
            orders=int(d.get("orders") or 0),
        )
        for d in levels
    ]


def map_depth(msg: dict) -> MarketSnapshot | None:
    """Map a Fyers depth update to a complete :class:`MarketSnapshot`."""

    if "bids" not in msg or "asks" not in msg:
        return None
    return MarketSnapshot(
        bids=_levels(msg["bids"]),
        asks=_levels(msg["asks"]),
        ohlcv=OHLCV(
            open=float(msg.get("o") or 0),
            high=float(msg.get("h") or 0),
            low=float(msg.get("l") or 0),
            close=float(msg.get("c") or 0),
            volume=float(msg.get("v") or 0),
        ),
    )


def map_message(msg: Any) -> list[UpstreamEvent]:
    """Return the events contained in one decoded Fyers frame."""

    if isinstance(msg, list):
        events: list[UpstreamEvent] = []
        for item in msg:
            events.extend(map_message(item))
        return events
    if not isinstance(msg, dict):
        return []
    events = []
    try:
        tick = map_tick(msg)
        if tick is not None:
            events.append(UpstreamEvent("tick", tick))
        snapshot = map_depth(msg)
        if snapshot is not None:
            events.append(UpstreamEvent("snapshot", snapshot))
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        log.warning("Dropping malformed Fyers message: %s", exc)
        return []
    return events


def subscribe_frames(instrument: str) -> list[dict]:
    """Frames requesting symbol data and market depth for ``instrument``."""
    return [
        {"T": "SUB_DATA", "SLIST": [instrument], "SUB_T": 1},
        {"T": "SUB_L2", "L2LIST": [instrument], "SUB_T": 1},
    ]


class FyersFeed(UpstreamFeed):
    """Fyers data socket bound to one access token."""

    name = "fyers"

    def __init__(
        self,
        access_token: str,
        *,
        app_id: str | None = None,
        url: str | None = None,
        connect: Callable[..., Any] = websockets.connect,
        ping_interval: float | None = None,
    ) -> None:
        self.access_token = access_token
        self.app_id = app_id if app_id is not None else settings.fyers_app_id
        self.url = url or settings.fyers_feed_url
        self._connect = connect
        self.ping_interval = (
            settings.fyers_ping_interval if ping_interval is None else ping_interval
        )

    def _ws_url(self) -> str:
        token = f"{self.app_id}:{self.access_token}" if self.app_id else self.access_token
        query = urlencode({"access_token": token, "user-agent": "fyers-api"})
        return f"{self.url}?{query}"

    async def stream(self, instrument: str) -> AsyncIterator[UpstreamEvent]:
        async with self._connect(self._ws_url(), ping_interval=self.ping_interval) as ws:
            log.info("Connected to Fyers WebSocket")
            yield UpstreamEvent.status("connected")
            for frame in subscribe_frames(instrument):
                await ws.send(json.dumps(frame))
            try:
                async for raw in ws:
                    try:
                        msg = json.loads(raw)
                    except (TypeError, ValueError):
                        log.debug("non JSON frame from Fyers ignored")
                        continue
                    for event in map_message(msg):
                        yield event
            finally:
                log.info("Fyers WebSocket disconnected.")


__all__ = [
    "UpstreamEvent",
    "UpstreamFeed",
    "FyersFeed",
    "map_tick",
    "map_depth",
    "map_message",
    "subscribe_frames",
]
