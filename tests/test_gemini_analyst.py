import json
from types import SimpleNamespace

import pytest

from auratrade.analysis import AnalysisErrorKind
from auratrade.analysis.gemini import (
    EXPLANATION_UNAVAILABLE,
    GeminiAnalyst,
    format_headlines,
    format_ticks,
    parse_signal,
)
from auratrade.config import settings
from auratrade.types import SignalAction, Trade, TradingStrategy

from conftest import make_headline, make_signal, make_snapshot, make_tick

REPLY = {"signal": "BUY", "confidence": 0.7, "target": 110, "stoploss": 97, "reason": "Momentum."}


class FakeModels:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.requests = []

    async def generate_content(self, *, model, contents, config):
        self.requests.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)


def _analyst(reply=None, error=None, **kwargs):
    models = FakeModels(reply, error)
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return GeminiAnalyst(client, model="gemini-test", **kwargs), models


def test_parse_signal():
    signal = parse_signal(json.dumps(REPLY))
    assert signal.signal is SignalAction.BUY
    assert signal.target == 110


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        json.dumps({"signal": "BUY"}),
        json.dumps({**REPLY, "signal": "MAYBE"}),
        json.dumps({**REPLY, "confidence": 1.5}),
        json.dumps([REPLY]),
    ],
)
def test_parse_signal_rejects(text):
    with pytest.raises(ValueError):
        parse_signal(text)


def test_format_ticks_latest_first_and_limited():
    ticks = [make_tick(price=float(i), ts=i * 1000) for i in range(15)]
    lines = format_ticks(ticks).splitlines()
    assert len(lines) == 10
    assert lines[0].startswith("Price: 14.00 at ")
    assert lines[-1].startswith("Price: 5.00 at ")
    assert format_ticks([]) == "No tick data available."


def test_format_headlines_uses_newest_five():
    headlines = [make_headline(text=f"h{i}") for i in range(8)]
    lines = format_headlines(headlines).splitlines()
    assert lines == [f"[Neutral] h{i}" for i in range(5)]
    assert format_headlines([]) == "No news headlines available."


@pytest.mark.asyncio
async def test_analyze_success_builds_prompt():
    analyst, models = _analyst(json.dumps(REPLY), strategy=TradingStrategy.SCALPING)
    ticks = [make_tick(price=101.25)]
    result = await analyst.analyze("NSE:RELIANCE-EQ", ticks, [make_headline()], make_snapshot().ohlcv)

    assert result.ok
    assert result.signal.reason == "Momentum."
    request = models.requests[0]
    assert request["model"] == "gemini-test"
    assert "Instrument: RELIANCE" in request["contents"]
    assert "Current Price: 101.25" in request["contents"]
    assert "Scalping" in request["config"].system_instruction
    assert request["config"].response_mime_type == "application/json"


@pytest.mark.asyncio
async def test_analyze_transport_error():
    analyst, _ = _analyst(error=RuntimeError("quota"))
    result = await analyst.analyze("NSE:SBIN-EQ", [make_tick()], [], make_snapshot().ohlcv)
    assert result.error.kind is AnalysisErrorKind.TRANSPORT
    assert "quota" in result.error.message


@pytest.mark.asyncio
async def test_analyze_invalid_reply():
    analyst, _ = _analyst("I think you should buy")
    result = await analyst.analyze("NSE:SBIN-EQ", [make_tick()], [], make_snapshot().ohlcv)
    assert result.error.kind is AnalysisErrorKind.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_not_configured_without_key(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", None)
    analyst = GeminiAnalyst()
    result = await analyst.analyze("NSE:SBIN-EQ", [make_tick()], [], make_snapshot().ohlcv)
    assert result.error.kind is AnalysisErrorKind.NOT_CONFIGURED
    trade = Trade(signal=make_signal(), tick=make_tick())
    assert await analyst.explain(trade) == EXPLANATION_UNAVAILABLE


@pytest.mark.asyncio
async def test_explain():
    analyst, models = _analyst("  Price broke out on positive news.  ")
    trade = Trade(
        signal=make_signal(),
        tick=make_tick(price=101.0),
        contextTicks=(make_tick(),),
        contextHeadlines=(make_headline(text="Upgrade"),),
    )
    assert await analyst.explain(trade) == "Price broke out on positive news."
    assert "[Neutral] Upgrade" in models.requests[0]["contents"]
    assert "**BUY** signal" in models.requests[0]["contents"]

    failing, _ = _analyst(error=RuntimeError("down"))
    assert await failing.explain(trade) == EXPLANATION_UNAVAILABLE
