from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, Awaitable, Callable

from ..utils.metrics import (
    BRIDGE_DROPPED,
    BRIDGE_MESSAGES,
    BRIDGE_SEND_FAILURES,
    UPSTREAM_SUBSCRIPTIONS,
    WS_FAILURES,
)
from .upstream import UpstreamEvent, UpstreamFeed

log = logging.getLogger(__name__)

FeedFactory = Callable[[str], UpstreamFeed]
Sender = Callable[[dict], Awaitable[None]]


class ClientSendError(Exception):
    """Raised when a message cannot be delivered to the client socket."""


class BridgeSession:
    """Relay state for one client connection.

    Holds at most one upstream feed.  A new subscription tears the previous
    feed down completely before the next one is created, and closing the
    session tears down whatever is left.  Upstream failures are logged; the
    client only hears about them when ``status_messages`` is enabled.
    """

    def __init__(
        self,
        send: Sender,
        feed_factory: FeedFactory,
        *,
        status_messages: bool = False,
    ) -> None:
        self._send = send
        self._feed_factory = feed_factory
        self.status_messages = status_messages
        self.instrument: str | None = None
        self._task: asyncio.Task | None = None

    @property
    def upstream_active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def handle_frame(self, raw: str | bytes) -> None:
        """Process one client frame; malformed frames are logged and dropped."""

        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            BRIDGE_DROPPED.inc()
            log.error("Error processing message: %s", exc)
            return
        if not isinstance(data, dict) or data.get("type") != "subscribe":
            BRIDGE_DROPPED.inc()
            log.warning("Ignoring unsupported client message: %.200s", raw)
            return
        instrument = data.get("instrument")
        token = data.get("accessToken")
        if not isinstance(instrument, str) or not instrument or not isinstance(token, str) or not token:
            BRIDGE_DROPPED.inc()
            log.warning("Subscribe message missing instrument or accessToken")
            return
        await self.subscribe(instrument, token)

    async def subscribe(self, instrument: str, access_token: str) -> None:
        log.info("Subscribing to %s", instrument)
        await self._teardown()
        feed = self._feed_factory(access_token)
        self.instrument = instrument
        UPSTREAM_SUBSCRIPTIONS.inc()
        self._task = asyncio.create_task(self._pump(feed, instrument))

    async def close(self) -> None:
        await self._teardown()

    async def _teardown(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _pump(self, feed: UpstreamFeed, instrument: str) -> None:
        try:
            async with contextlib.aclosing(feed.stream(instrument)) as events:
                async for event in events:
                    await self._forward(event)
            log.info("Upstream feed for %s ended", instrument)
            await self._forward(UpstreamEvent.status("closed"))
        except asyncio.CancelledError:
            raise
        except ClientSendError as exc:
            log.warning("Stopping relay of %s, client send failed: %s", instrument, exc)
        except Exception as exc:
            WS_FAILURES.labels(adapter=feed.name).inc()
            log.error("%s WebSocket Error: %s", feed.name, exc)
            with contextlib.suppress(Exception):
                await self._forward(UpstreamEvent.status("error", str(exc)))
        finally:
            with contextlib.suppress(Exception):
                await feed.close()

    async def _forward(self, event: UpstreamEvent) -> None:
        if event.kind == "status":
            if not self.status_messages:
                return
            data: Any = event.data
        else:
            data = event.data.model_dump(mode="json")
        try:
            await self._send({"type": event.kind, "data": data})
        except Exception as exc:
            BRIDGE_SEND_FAILURES.inc()
            raise ClientSendError(str(exc)) from exc
        BRIDGE_MESSAGES.labels(kind=event.kind).inc()
