"""Gemini backed analyst.

The client handle is passed in (or built from an API key) by the owning
application; nothing is created at import time.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Sequence

from google import genai
from google.genai import types as genai_types
from pydantic import ValidationError

from ..config import settings
from ..core.symbols import display_name
from ..types import AISignal, NewsHeadline, OHLCV, SignalAction, Tick, Trade, TradingStrategy
from .base import AnalysisErrorKind, AnalysisResult

log = logging.getLogger(__name__)

EXPLANATION_UNAVAILABLE = (
    "Sorry, I was unable to retrieve an explanation for this trade due to a server error."
)

SIGNAL_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "signal": {
            "type": "STRING",
            "enum": [a.value for a in SignalAction],
            "description": "The trading signal: BUY, SELL, or HOLD.",
        },
        "confidence": {
            "type": "NUMBER",
            "description": "Confidence level of the signal, from 0.0 to 1.0.",
        },
        "target": {
            "type": "NUMBER",
            "description": "Suggested target price for the trade.",
        },
        "stoploss": {
            "type": "NUMBER",
            "description": "Suggested stop-loss price for the trade.",
        },
        "reason": {
            "type": "STRING",
            "description": "A brief, 1-2 sentence reason for the signal based on the provided data.",
        },
    },
    "required": ["signal", "confidence", "target", "stoploss", "reason"],
}


def format_ticks(ticks: Sequence[Tick], limit: int = 10) -> str:
    if not ticks:
        return "No tick data available."
    recent = list(ticks)[-limit:][::-1]
    return "\n".join(
        f"Price: {t.price:.2f} at {datetime.fromtimestamp(t.timestamp / 1000).strftime('%H:%M:%S')}"
        for t in recent
    )


def format_headlines(headlines: Sequence[NewsHeadline], limit: int = 5) -> str:
    if not headlines:
        return "No news headlines available."
    return "\n".join(f"[{h.sentiment.value}] {h.text}" for h in list(headlines)[:limit])


def format_ohlcv(ohlcv: OHLCV) -> str:
    return (
        f"Open: {ohlcv.open}, High: {ohlcv.high}, Low: {ohlcv.low}, "
        f"Close: {ohlcv.close}, Volume: {ohlcv.volume}"
    )


def parse_signal(text: str) -> AISignal:
    """Validate the model's JSON reply.  Raises ``ValueError`` when unusable."""
    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise ValueError(f"response is not JSON: {exc}") from exc
    if not isinstance(data, dict) or not data.get("signal") or not data.get("reason"):
        raise ValueError("Invalid signal format received from AI")
    try:
        return AISignal.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


class GeminiAnalyst:
    """Analyst using the Gemini ``generate_content`` API.

    Parameters
    ----------
    client:
        A ``google.genai.Client``.  When omitted one is built from ``api_key``
        (or ``GEMINI_API_KEY``); without either the analyst reports
        ``NOT_CONFIGURED`` instead of calling out.
    strategy:
        Trading style mentioned to the model when producing signals.
    """

    def __init__(
        self,
        client: genai.Client | None = None,
        *,
        api_key: str | None = None,
        model: str | None = None,
        strategy: TradingStrategy | None = None,
    ) -> None:
        key = api_key or settings.gemini_api_key
        if client is None and key:
            client = genai.Client(api_key=key)
        self.client = client
        self.model = model or settings.gemini_model
        self.strategy = strategy

    def _system_instruction(self, name: str, latest_price: float) -> str:
        text = (
            "You are an expert financial analyst AI providing real-time trading signals for the Indian stock market.\n"
            f"Analyze the provided market data for {name} and generate a trading signal (BUY, SELL, or HOLD).\n"
            "Your analysis must be based *only* on the data provided: recent price ticks, market sentiment from news headlines, and the day's OHLCV data.\n"
            "Be decisive but cautious. If the data is ambiguous, it is better to signal HOLD.\n"
            f"Calculate a realistic target and stoploss based on the current price of {latest_price:.2f}. "
            "For a BUY signal, target should be higher and stoploss lower. For a SELL signal, target should be lower and stoploss higher. "
            "The stoploss should be closer to the current price than the target to manage risk."
        )
        if self.strategy is not None:
            text += f"\nThe trader follows a {self.strategy.value} strategy; size targets accordingly."
        return text

    async def analyze(
        self,
        instrument: str,
        ticks: Sequence[Tick],
        headlines: Sequence[NewsHeadline],
        ohlcv: OHLCV,
    ) -> AnalysisResult:
        if self.client is None:
            return AnalysisResult.failure(
                AnalysisErrorKind.NOT_CONFIGURED, "Missing Gemini API key"
            )

        name = display_name(instrument)
        latest_price = ticks[-1].price if ticks else ohlcv.close
        prompt = (
            f"Instrument: {name}\n"
            f"Current Price: {latest_price:.2f}\n\n"
            f"**Recent Price Ticks (latest first):**\n{format_ticks(ticks)}\n\n"
            f"**Recent News Headlines:**\n{format_headlines(headlines)}\n\n"
            f"**Day's OHLCV Data:**\n{format_ohlcv(ohlcv)}\n\n"
            "Based on this data, provide a trading signal in JSON format."
        )
        config = genai_types.GenerateContentConfig(
            system_instruction=self._system_instruction(name, latest_price),
            response_mime_type="application/json",
            response_schema=SIGNAL_SCHEMA,
            temperature=settings.analysis_temperature,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model, contents=prompt, config=config
            )
        except Exception as exc:
            log.error("Gemini analysis request failed: %s", exc)
            return AnalysisResult.failure(AnalysisErrorKind.TRANSPORT, str(exc))

        try:
            signal = parse_signal(response.text or "")
        except ValueError as exc:
            log.error("Gemini analysis returned an unusable reply: %s", exc)
            return AnalysisResult.failure(AnalysisErrorKind.INVALID_RESPONSE, str(exc))
        return AnalysisResult.success(signal)

    async def explain(self, trade: Trade) -> str:
        if self.client is None:
            return EXPLANATION_UNAVAILABLE
        signal = trade.signal
        system_instruction = (
            "You are a financial analyst AI named Aura. You are explaining a trading decision you made previously.\n"
            "Analyze the provided historical market data that was available at the moment of the trade.\n"
            "Provide a concise, 2-3 sentence explanation for why you issued the original signal.\n"
            "Focus on the interplay between price action (ticks) and news sentiment that led to the decision.\n"
            "Do not give financial advice or comment on the trade's outcome. Just explain the original rationale."
        )
        prompt = (
            "**Trade to Explain:**\n"
            f"I issued a **{signal.signal.value}** signal for the instrument at a price of **{trade.tick.price:.2f}**.\n"
            f'My original reasoning was: "{signal.reason}".\n\n'
            "**Market Context at Time of Trade:**\n\n"
            f"*Price Ticks Leading up to the Trade:*\n{format_ticks(trade.context_ticks)}\n\n"
            f"*News Headlines at the Time:*\n{format_headlines(trade.context_headlines)}\n\n"
            "**Task:**\n"
            f"Based on the market context provided, please re-state and elaborate on the rationale for the {signal.signal.value} signal in 2-3 sentences."
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=genai_types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    temperature=settings.explanation_temperature,
                ),
            )
        except Exception as exc:
            log.error("Gemini explanation request failed: %s", exc)
            return EXPLANATION_UNAVAILABLE
        return (response.text or "").strip() or EXPLANATION_UNAVAILABLE
