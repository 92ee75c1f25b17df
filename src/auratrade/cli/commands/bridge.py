"""Feed bridge server command."""
from __future__ import annotations

import typer

from ...config import settings
from ...logging_conf import setup_logging

app = typer.Typer(help="Feed bridge server")


@app.command("serve")
def serve(
    host: str = typer.Option(settings.host, "--host", help="Bind address"),
    port: int = typer.Option(settings.port, "--port", help="Bind port"),
    status_messages: bool = typer.Option(
        settings.bridge_status_messages,
        "--status-messages/--no-status-messages",
        help="Forward upstream status messages to clients",
    ),
    log_level: str = typer.Option(
        "INFO", "--log-level", help="Logging level (e.g., INFO, DEBUG)"
    ),
) -> None:
    """Run the feed bridge HTTP/WebSocket server."""

    setup_logging(log_level)
    import uvicorn

    from ...apps.api.main import create_app
    from ...bridge.fyers_auth import ConfigurationError

    try:
        api = create_app(status_messages=status_messages)
    except ConfigurationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)
    uvicorn.run(api, host=host, port=port, log_config=None)
