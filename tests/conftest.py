import asyncio
import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).parent))
root_dir = pathlib.Path(__file__).resolve().parents[1]
# Ensure the src package is importable
if str(root_dir / "src") not in sys.path:
    sys.path.append(str(root_dir / "src"))

from auratrade.analysis.base import AnalysisResult  # noqa: E402
from auratrade.bridge.upstream import UpstreamEvent, UpstreamFeed  # noqa: E402
from auratrade.types import (  # noqa: E402
    AISignal,
    MarketDepthEntry,
    MarketSnapshot,
    NewsHeadline,
    OHLCV,
    Sentiment,
    SignalAction,
    Tick,
)


class ManualTimer:
    """Timer driven by :meth:`advance` instead of the wall clock."""

    class Handle:
        def __init__(self, due, callback):
            self.due = due
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.now = 0.0
        self.pending: list[ManualTimer.Handle] = []

    def call_later(self, delay, callback):
        handle = self.Handle(self.now + delay, callback)
        self.pending.append(handle)
        return handle

    @property
    def scheduled(self):
        return [h for h in self.pending if not h.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [h for h in self.scheduled if h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.pending.remove(handle)
            self.now = handle.due
            handle.callback()
        self.now = target


class StubAnalyst:
    """Analyst returning queued results; ``gate`` holds calls open when set."""

    def __init__(self, results=None, explanation="because"):
        self.results = list(results or [])
        self.calls = []
        self.explanation = explanation
        self.gate: asyncio.Event | None = None

    async def analyze(self, instrument, ticks, headlines, ohlcv):
        self.calls.append((instrument, list(ticks), list(headlines), ohlcv))
        if self.gate is not None:
            await self.gate.wait()
        if self.results:
            return self.results.pop(0)
        return AnalysisResult.success(make_signal())

    async def explain(self, trade):
        if isinstance(self.explanation, Exception):
            raise self.explanation
        return self.explanation


class FakeFeed(UpstreamFeed):
    """Upstream feed yielding ``events`` and then idling until cancelled."""

    name = "fake"

    def __init__(self, token, events=(), fail=None):
        self.token = token
        self.events = list(events)
        self.fail = fail
        self.instrument = None
        self.open = False
        self.closed = False

    async def stream(self, instrument):
        self.instrument = instrument
        self.open = True
        try:
            for event in self.events:
                yield event
            if self.fail is not None:
                raise self.fail
            await asyncio.Event().wait()
        finally:
            self.open = False

    async def close(self):
        self.closed = True


def make_tick(price=100.0, ts=1_700_000_000_000, volume=0):
    return Tick(timestamp=ts, price=price, volume=volume)


def make_snapshot(close=99.0):
    return MarketSnapshot(
        bids=[MarketDepthEntry(price=99.5, quantity=10, orders=2)],
        asks=[MarketDepthEntry(price=100.5, quantity=8, orders=1)],
        ohlcv=OHLCV(open=98.0, high=101.0, low=97.0, close=close, volume=1000),
    )


def make_headline(text="Market steady", sentiment=Sentiment.NEUTRAL, ts=1_700_000_000_000):
    return NewsHeadline(timestamp=ts, sentiment=sentiment, text=text)


def make_signal(action=SignalAction.BUY, target=110.0, stoploss=95.0, confidence=0.8):
    return AISignal(
        signal=action,
        confidence=confidence,
        target=target,
        stoploss=stoploss,
        reason="test signal",
    )


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def analyst():
    return StubAnalyst()


@pytest.fixture
def tick_event():
    return UpstreamEvent("tick", make_tick())
