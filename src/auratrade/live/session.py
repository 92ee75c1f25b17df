from __future__ import annotations

import logging
from typing import Callable

from ..analysis.base import Analyst
from ..analysis.gemini import EXPLANATION_UNAVAILABLE
from ..analysis.signals import SignalGenerator
from ..auth.session import AuthSession
from ..client.market_data import MarketDataClient
from ..config import settings
from ..core.symbols import resolve
from ..market.snapshot import SnapshotStore
from ..market.ticks import TickBuffer
from ..news.feed import HeadlineSource, NewsFeed
from ..reporting.performance import TradeLog
from ..types import SignalAction, Trade
from ..utils.timer import Timer

log = logging.getLogger(__name__)

ClientFactory = Callable[[str, str | None, TickBuffer, SnapshotStore], MarketDataClient]


class TradingSession:
    """Wires the market-data pipeline for one instrument.

    Parameters
    ----------
    auth:
        Session holding the bearer credential; connecting requires a token.
    analyst:
        Injected analyst used for signals and trade explanations.
    client_factory:
        Builds the :class:`MarketDataClient`; tests replace it with a stub.
    timer:
        Shared by the news feed and the signal generator.
    """

    def __init__(
        self,
        auth: AuthSession,
        analyst: Analyst,
        instrument: str = "nifty",
        *,
        client_factory: ClientFactory | None = None,
        headline_source: HeadlineSource | None = None,
        timer: Timer | None = None,
    ) -> None:
        self.auth = auth
        self.analyst = analyst
        self.instrument = resolve(instrument)
        self._client_factory = client_factory or (
            lambda inst, token, ticks, snaps: MarketDataClient(inst, token, ticks, snaps)
        )
        self.ticks = TickBuffer(settings.tick_buffer_size)
        self.snapshots = SnapshotStore()
        self.trade_log = TradeLog(settings.trade_log_size)
        self.news = NewsFeed(
            self.instrument,
            headline_source,
            max_headlines=settings.news_max_headlines,
            timer=timer,
        )
        self.signals = SignalGenerator(
            self.analyst,
            self.instrument,
            self.ticks,
            self.snapshots,
            self.news,
            timer=timer,
        )
        self.client: MarketDataClient | None = None

    @property
    def connected(self) -> bool:
        return self.client is not None

    async def connect(self) -> bool:
        if self.client is not None:
            return True
        if not self.auth.access_token:
            log.warning("Cannot connect without an access token")
            return False
        client = self._client_factory(self.instrument, self.auth.access_token, self.ticks, self.snapshots)
        if not await client.connect():
            return False
        self.client = client
        self.news.activate(settings.news_interval)
        self.signals.activate()
        return True

    async def disconnect(self) -> None:
        self.signals.deactivate()
        self.news.deactivate()
        client, self.client = self.client, None
        if client is not None:
            await client.disconnect()

    async def aclose(self) -> None:
        await self.disconnect()
        await self.signals.wait_settled()

    async def switch_instrument(self, instrument: str) -> None:
        """Point the session at another instrument, reconnecting if connected."""
        was_connected = self.connected
        await self.disconnect()
        await self.signals.wait_settled()
        self.instrument = resolve(instrument)
        self.ticks.reset()
        self.snapshots.reset()
        self.news.clear()
        self.news.instrument = self.instrument
        self.signals.instrument = self.instrument
        if was_connected:
            await self.connect()

    def confirm_trade(self) -> Trade | None:
        """Record the current signal as a simulated trade at the latest tick.

        Nothing is recorded without a BUY/SELL signal and at least one tick.
        """
        signal = self.signals.signal
        tick = self.ticks.latest()
        if signal is None or signal.signal is SignalAction.HOLD or tick is None:
            return None
        trade = Trade(
            signal=signal,
            tick=tick,
            context_ticks=tuple(self.ticks.snapshot()),
            context_headlines=tuple(self.news.headlines),
        )
        self.trade_log.confirm(trade)
        log.info("Confirmed %s at %.2f", signal.signal.value, tick.price)
        return trade

    async def explain_trade(self, trade: Trade) -> str:
        try:
            return await self.analyst.explain(trade)
        except Exception:
            log.exception("Error getting trade explanation")
            return EXPLANATION_UNAVAILABLE
