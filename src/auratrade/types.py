from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Tick(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int  # ms since epoch
    price: float
    volume: int = 0


class MarketDepthEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    quantity: float
    orders: int = 0


class OHLCV(BaseModel):
    model_config = ConfigDict(frozen=True)

    open: float
    high: float
    low: float
    close: float  # previous session's close
    volume: float


class MarketSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    bids: list[MarketDepthEntry]
    asks: list[MarketDepthEntry]
    ohlcv: OHLCV


class Sentiment(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"


class NewsHeadline(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int
    sentiment: Sentiment
    text: str


class SignalAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class AISignal(BaseModel):
    model_config = ConfigDict(frozen=True)

    signal: SignalAction
    confidence: float = Field(ge=0.0, le=1.0)
    target: float
    stoploss: float
    reason: str


class Trade(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    signal: AISignal
    tick: Tick
    context_ticks: tuple[Tick, ...] = Field(default=(), alias="contextTicks")
    context_headlines: tuple[NewsHeadline, ...] = Field(default=(), alias="contextHeadlines")


class AuthStatus(str, Enum):
    IDLE = "IDLE"
    AUTHENTICATING = "AUTHENTICATING"
    AUTHENTICATED = "AUTHENTICATED"
    ERROR = "ERROR"


class TradingStrategy(str, Enum):
    SCALPING = "Scalping"
    SWING = "Swing Trading"
    INTRADAY = "Intraday Momentum"


@dataclass(frozen=True)
class PerformanceMetrics:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    total_net_pl: float = 0.0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0


@dataclass(frozen=True)
class EquityDataPoint:
    trade_number: int
    cumulative_pl: float
