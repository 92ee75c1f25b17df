"""Simulated trade log and performance statistics.

Trades are bookkeeping only; no fills exist.  To produce a P/L each trade is
assigned a synthetic outcome by its chronological position: even positions
exit at the target, odd positions at the stoploss.  Wins and losses are then
classified by the sign of that P/L, not by the position.  The whole log is
recomputed on every change.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Iterable, Sequence

import pandas as pd

from ..types import EquityDataPoint, PerformanceMetrics, SignalAction, Trade
from ..utils.metrics import TRADES_CONFIRMED, TRADING_PNL


def trade_pl(trade: Trade, index: int) -> float:
    """P/L of ``trade`` at chronological ``index`` under the alternating exit rule."""

    signal = trade.signal
    entry = trade.tick.price
    exit_px = signal.target if index % 2 == 0 else signal.stoploss
    if signal.signal is SignalAction.BUY:
        return exit_px - entry
    if signal.signal is SignalAction.SELL:
        return entry - exit_px
    return 0.0


def compute_performance(
    trades: Sequence[Trade],
) -> tuple[PerformanceMetrics, list[EquityDataPoint]]:
    """Return metrics and equity curve for a newest-first ``trades`` log."""

    equity_curve = [EquityDataPoint(trade_number=0, cumulative_pl=0.0)]
    if not trades:
        return PerformanceMetrics(), equity_curve

    chronological = list(reversed(trades))
    winning = losing = 0
    total_profit = total_loss = 0.0
    cumulative = 0.0

    for index, trade in enumerate(chronological):
        pl = trade_pl(trade, index)
        if pl > 0:
            winning += 1
            total_profit += pl
        else:
            losing += 1
            total_loss += abs(pl)
        cumulative += pl
        equity_curve.append(EquityDataPoint(trade_number=index + 1, cumulative_pl=cumulative))

    total = len(chronological)
    metrics = PerformanceMetrics(
        total_trades=total,
        winning_trades=winning,
        losing_trades=losing,
        total_net_pl=cumulative,
        win_rate=winning / total * 100,
        profit_factor=total_profit / total_loss if total_loss > 0 else 0.0,
        average_win=total_profit / winning if winning else 0.0,
        average_loss=total_loss / losing if losing else 0.0,
    )
    return metrics, equity_curve


class TradeLog:
    """Newest-first log of confirmed trades capped at ``maxlen``."""

    def __init__(self, maxlen: int = 100, trades: Iterable[Trade] = ()) -> None:
        self.maxlen = maxlen
        self._trades: deque[Trade] = deque(list(trades)[:maxlen], maxlen=maxlen)
        self._listeners: list[Callable[[PerformanceMetrics], None]] = []
        self._recompute()

    def confirm(self, trade: Trade) -> None:
        self._trades.appendleft(trade)
        TRADES_CONFIRMED.labels(side=trade.signal.signal.value).inc()
        self._recompute()

    def clear(self) -> None:
        self._trades.clear()
        self._recompute()

    def on_change(self, callback: Callable[[PerformanceMetrics], None]) -> None:
        self._listeners.append(callback)

    @property
    def trades(self) -> list[Trade]:
        return list(self._trades)

    def __len__(self) -> int:
        return len(self._trades)

    def _recompute(self) -> None:
        self.metrics, self.equity_curve = compute_performance(self._trades)
        TRADING_PNL.set(self.metrics.total_net_pl)
        for cb in list(self._listeners):
            cb(self.metrics)

    def equity_frame(self) -> pd.DataFrame:
        """Equity curve as a DataFrame indexed by trade number."""

        return pd.DataFrame(
            {
                "trade_number": [p.trade_number for p in self.equity_curve],
                "cumulative_pl": [p.cumulative_pl for p in self.equity_curve],
            }
        ).set_index("trade_number")


__all__ = ["trade_pl", "compute_performance", "TradeLog"]
