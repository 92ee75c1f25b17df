"""Websocket consumer of the feed bridge.

Feeds incoming ``tick`` and ``snapshot`` messages into a :class:`TickBuffer`
and :class:`SnapshotStore`, in delivery order.  Both are reset whenever a new
connection opens so data from a previous instrument is never mixed in.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Callable

import websockets
from websockets.exceptions import WebSocketException
from pydantic import ValidationError

from ..config import settings
from ..market.snapshot import SnapshotStore
from ..market.ticks import TickBuffer
from ..types import MarketSnapshot, Tick

log = logging.getLogger(__name__)


def websocket_url(base_url: str) -> str:
    """Map the bridge's HTTP base URL to its websocket URL."""
    if base_url.startswith("https://"):
        return "wss://" + base_url[len("https://"):]
    if base_url.startswith("http://"):
        return "ws://" + base_url[len("http://"):]
    return base_url


class MarketDataClient:
    def __init__(
        self,
        instrument: str,
        access_token: str | None,
        ticks: TickBuffer,
        snapshots: SnapshotStore,
        *,
        url: str | None = None,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        self.instrument = instrument
        self.access_token = access_token
        self.ticks = ticks
        self.snapshots = snapshots
        self.url = url or websocket_url(settings.proxy_base_url)
        self._connect = connect
        self._ws: Any = None
        self._task: asyncio.Task | None = None
        self.last_status: dict | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> bool:
        """Open the bridge connection and subscribe.  No-op without a token or when open."""
        if not self.access_token or self._ws is not None:
            return False
        log.info("Connecting WebSocket to %s...", self.url)
        try:
            ws = await self._connect(self.url)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            log.error("WebSocket error: %s", exc)
            return False
        log.info("WebSocket connected. Subscribing to %s...", self.instrument)
        self.ticks.reset()
        self.snapshots.reset()
        try:
            await ws.send(
                json.dumps(
                    {"type": "subscribe", "instrument": self.instrument, "accessToken": self.access_token}
                )
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            log.error("WebSocket error: %s", exc)
            with contextlib.suppress(Exception):
                await ws.close()
            return False
        self._ws = ws
        self._task = asyncio.create_task(self._receive(ws))
        return True

    async def disconnect(self) -> None:
        ws, self._ws = self._ws, None
        task, self._task = self._task, None
        if ws is not None:
            with contextlib.suppress(Exception):
                await ws.close()
            log.info("WebSocket disconnected.")
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _receive(self, ws) -> None:
        try:
            async for raw in ws:
                self.handle_message(raw)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.error("WebSocket error: %s", exc)
        finally:
            log.info("WebSocket connection closed.")
            if self._ws is ws:
                self._ws = None

    def handle_message(self, raw: str | bytes) -> None:
        """Apply one bridge message; malformed messages are logged and dropped."""
        try:
            message = json.loads(raw)
            kind = message.get("type")
            if kind == "tick":
                self.ticks.append(Tick.model_validate(message["data"]))
            elif kind == "snapshot":
                self.snapshots.replace(MarketSnapshot.model_validate(message["data"]))
            elif kind == "status":
                self.last_status = message.get("data")
                log.info("Bridge status: %s", self.last_status)
            else:
                log.debug("Ignoring bridge message of type %r", kind)
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as exc:
            log.error("Error parsing WebSocket message: %s", exc)
