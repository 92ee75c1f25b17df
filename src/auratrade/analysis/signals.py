"""Periodic AI signal generation.

:class:`SignalGenerator` is an explicit state machine::

    IDLE --activate--> SCHEDULED --timer, context ready--> ANALYZING
    SCHEDULED --timer, context missing--> SCHEDULED
    ANALYZING --call settles--> SCHEDULED
    SCHEDULED/ANALYZING --deactivate--> IDLE

Only one analysis call is ever in flight.  Everything runs on the event loop
thread, so transitions need no locking.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable

from ..config import settings
from ..market.snapshot import SnapshotStore
from ..market.ticks import TickBuffer
from ..news.feed import NewsFeed
from ..types import AISignal, NewsHeadline, OHLCV, SignalAction, Tick
from ..utils.metrics import ANALYSIS_CALLS, ANALYSIS_ERRORS, ANALYSIS_LATENCY, ANALYSIS_SKIPS
from ..utils.timer import LoopTimer, Timer, TimerHandle
from .base import AnalysisResult, Analyst

log = logging.getLogger(__name__)

FALLBACK_REASON = "Could not retrieve AI analysis due to an error. Holding position."
FALLBACK_CONFIDENCE = 0.5


class SignalState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    ANALYZING = "analyzing"


def fallback_signal(ticks: list[Tick], ohlcv: OHLCV) -> AISignal:
    """HOLD at the latest price, used when the analyst reports an error."""
    price = ticks[-1].price if ticks else ohlcv.close
    return AISignal(
        signal=SignalAction.HOLD,
        confidence=FALLBACK_CONFIDENCE,
        target=price,
        stoploss=price,
        reason=FALLBACK_REASON,
    )


class SignalGenerator:
    """Poll ``analyst`` for a signal while the data connection is active.

    Parameters
    ----------
    analyst:
        Injected collaborator implementing :class:`~auratrade.analysis.base.Analyst`.
    ticks, snapshots, news:
        Market context read at the moment a cycle fires.
    timer:
        Cancellable timer; defaults to the running event loop.
    """

    def __init__(
        self,
        analyst: Analyst,
        instrument: str,
        ticks: TickBuffer,
        snapshots: SnapshotStore,
        news: NewsFeed,
        *,
        timer: Timer | None = None,
        initial_delay: float | None = None,
        interval: float | None = None,
        min_ticks: int | None = None,
    ) -> None:
        self.analyst = analyst
        self.instrument = instrument
        self.ticks = ticks
        self.snapshots = snapshots
        self.news = news
        self.timer = timer or LoopTimer()
        self.initial_delay = settings.analysis_initial_delay if initial_delay is None else initial_delay
        self.interval = settings.analysis_interval if interval is None else interval
        self.min_ticks = settings.analysis_min_ticks if min_ticks is None else min_ticks

        self.state = SignalState.IDLE
        self.signal: AISignal | None = None
        self._handle: TimerHandle | None = None
        self._task: asyncio.Task | None = None
        # bumped on every activation/deactivation so late results can be recognised
        self._epoch = 0
        self._listeners: list[Callable[[AISignal | None], None]] = []

    # ------------------------------------------------------------------
    # Public API
    @property
    def is_analyzing(self) -> bool:
        return self.state is SignalState.ANALYZING

    def on_signal(self, callback: Callable[[AISignal | None], None]) -> None:
        self._listeners.append(callback)

    def activate(self) -> None:
        if self.state is not SignalState.IDLE:
            return
        self._epoch += 1
        self._schedule(self.initial_delay)

    def deactivate(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._epoch += 1
        self.state = SignalState.IDLE
        self._set_signal(None)

    async def wait_settled(self) -> None:
        """Wait for the analysis call in flight, if any, to settle."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def aclose(self) -> None:
        self.deactivate()
        await self.wait_settled()

    # ------------------------------------------------------------------
    # State machine
    def context_ready(self) -> bool:
        return (
            len(self.ticks) >= self.min_ticks
            and len(self.news) > 0
            and bool(self.instrument)
            and self.snapshots.ohlcv is not None
        )

    def _schedule(self, delay: float) -> None:
        self.state = SignalState.SCHEDULED
        self._handle = self.timer.call_later(delay, self._on_timer)

    def _on_timer(self) -> None:
        self._handle = None
        if self.state is not SignalState.SCHEDULED:
            return
        if self._task is not None and not self._task.done():
            # a call from before the last reactivation is still pending
            self._schedule(self.interval)
            return
        ohlcv = self.snapshots.ohlcv
        if ohlcv is None or not self.context_ready():
            ANALYSIS_SKIPS.inc()
            self._schedule(self.interval)
            return

        self.state = SignalState.ANALYZING
        self._task = asyncio.get_running_loop().create_task(
            self._analyze(self._epoch, self.ticks.snapshot(), self.news.headlines, ohlcv)
        )

    async def _analyze(
        self,
        epoch: int,
        ticks: list[Tick],
        headlines: list[NewsHeadline],
        ohlcv: OHLCV,
    ) -> None:
        ANALYSIS_CALLS.inc()
        start = time.perf_counter()
        result: AnalysisResult | None = None
        try:
            result = await self.analyst.analyze(self.instrument, ticks, headlines, ohlcv)
        except Exception:
            log.exception("Analysis failed for %s", self.instrument)
        finally:
            ANALYSIS_LATENCY.observe(time.perf_counter() - start)

        if epoch != self._epoch:
            log.debug("discarding analysis result from a previous session")
            return

        if result is not None and result.signal is not None:
            self._set_signal(result.signal)
        elif result is not None and result.error is not None:
            ANALYSIS_ERRORS.labels(kind=result.error.kind.value).inc()
            log.warning(
                "Analysis error (%s): %s; holding", result.error.kind.value, result.error.message
            )
            self._set_signal(fallback_signal(ticks, ohlcv))
        self._schedule(self.interval)

    def _set_signal(self, signal: AISignal | None) -> None:
        if signal == self.signal:
            return
        self.signal = signal
        if signal is not None:
            log.info(
                "%s signal %s conf=%.2f target=%.2f sl=%.2f",
                self.instrument,
                signal.signal.value,
                signal.confidence,
                signal.target,
                signal.stoploss,
            )
        for cb in list(self._listeners):
            try:
                cb(signal)
            except Exception:
                log.exception("Signal listener %r failed", cb)


__all__ = ["SignalGenerator", "SignalState", "fallback_signal", "FALLBACK_REASON"]
