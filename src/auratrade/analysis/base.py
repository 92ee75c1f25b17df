"""Analyst collaborator interface.

The analyst turns market context into an :class:`~auratrade.types.AISignal`
and explains past trades.  Failures are returned as values so callers decide
the fallback policy and can count errors by kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Sequence

from ..types import AISignal, NewsHeadline, OHLCV, Tick, Trade


class AnalysisErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    TRANSPORT = "transport"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AnalysisError:
    kind: AnalysisErrorKind
    message: str = ""


@dataclass(frozen=True)
class AnalysisResult:
    """Either a ``signal`` or an ``error``, never both."""

    signal: AISignal | None = None
    error: AnalysisError | None = None

    def __post_init__(self) -> None:
        if (self.signal is None) == (self.error is None):
            raise ValueError("AnalysisResult needs exactly one of signal or error")

    @property
    def ok(self) -> bool:
        return self.signal is not None

    @classmethod
    def success(cls, signal: AISignal) -> "AnalysisResult":
        return cls(signal=signal)

    @classmethod
    def failure(cls, kind: AnalysisErrorKind, message: str = "") -> "AnalysisResult":
        return cls(error=AnalysisError(kind, message))


class Analyst(Protocol):
    async def analyze(
        self,
        instrument: str,
        ticks: Sequence[Tick],
        headlines: Sequence[NewsHeadline],
        ohlcv: OHLCV,
    ) -> AnalysisResult: ...

    async def explain(self, trade: Trade) -> str: ...


__all__ = [
    "AnalysisErrorKind",
    "AnalysisError",
    "AnalysisResult",
    "Analyst",
]
