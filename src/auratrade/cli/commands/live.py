"""Live session commands."""
from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

import typer

from ...analysis.gemini import GeminiAnalyst
from ...auth.client import ProxyAuthClient
from ...auth.session import AuthSession
from ...config import settings
from ...core.symbols import INSTRUMENTS
from ...logging_conf import setup_logging
from ...storage.local import LocalStore, SettingsStore
from ...types import AISignal

app = typer.Typer(help="Live session utilities")


def _print_signal(signal: AISignal | None) -> None:
    if signal is None:
        return
    typer.echo(
        f"[{signal.signal.value}] conf={signal.confidence:.2f} "
        f"target={signal.target:.2f} stop={signal.stoploss:.2f} :: {signal.reason}"
    )


async def _watch(session, duration: float | None) -> None:
    last = None

    def _print_news() -> None:
        nonlocal last
        fresh = []
        for headline in session.news.headlines:
            if headline is last:
                break
            fresh.append(headline)
        for headline in reversed(fresh):
            typer.echo(f"  news ({headline.sentiment.value}): {headline.text}")
        if fresh:
            last = fresh[0]

    session.signals.on_signal(_print_signal)
    if not await session.connect():
        typer.echo("Unable to connect; run `auratrade login` first", err=True)
        raise typer.Exit(1)
    typer.echo(f"Watching {session.instrument}. Press Ctrl-C to stop.")
    loop = asyncio.get_running_loop()
    deadline = None if duration is None else loop.time() + duration
    try:
        while deadline is None or loop.time() < deadline:
            await asyncio.sleep(1.0)
            _print_news()
            if not session.connected or (session.client is not None and not session.client.connected):
                typer.echo("Feed connection closed", err=True)
                break
    finally:
        await session.aclose()
        metrics = session.trade_log.metrics
        typer.echo(f"Trades: {metrics.total_trades}  Net P/L: {metrics.total_net_pl:.2f}")


@app.command("watch")
def watch(
    instrument: str = typer.Option(
        "nifty", "--instrument", help=f"Instrument id or shortcut ({', '.join(INSTRUMENTS)})"
    ),
    duration: float | None = typer.Option(None, "--duration", help="Stop after N seconds"),
    store_path: Path = typer.Option(Path(settings.store_path), "--store", help="Local store file"),
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Logging level (e.g., INFO, DEBUG)"
    ),
) -> None:
    """Stream signals and headlines for an instrument."""

    setup_logging(log_level)
    from ...live.session import TradingSession

    store = LocalStore(store_path)
    auth = AuthSession(ProxyAuthClient(), store)
    strategy = SettingsStore(store).settings.trading_strategy
    session = TradingSession(auth, GeminiAnalyst(strategy=strategy), instrument)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_watch(session, duration))
