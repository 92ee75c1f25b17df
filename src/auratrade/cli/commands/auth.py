"""Broker authentication commands.

Login is a two step flow: ``login`` prints the broker URL to open in a
browser, and ``token`` exchanges the ``auth_code`` from the redirect for an
access token that is persisted in the local store.
"""
from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from ...auth.client import ProxyAuthClient
from ...auth.session import AuthSession
from ...config import settings
from ...storage.local import LocalStore

app = typer.Typer(help="Broker authentication")

DEFAULT_REDIRECT = "http://localhost:5173/"


def _session(store_path: Path | None, proxy: str | None) -> AuthSession:
    return AuthSession(ProxyAuthClient(proxy), LocalStore(store_path))


@app.command("login")
def login(
    redirect_uri: str = typer.Option(DEFAULT_REDIRECT, "--redirect-uri", help="Registered redirect URI"),
    proxy: str = typer.Option(settings.proxy_base_url, "--proxy", help="Feed bridge base URL"),
    store_path: Path = typer.Option(Path(settings.store_path), "--store", help="Local store file"),
) -> None:
    """Print the broker login URL."""

    session = _session(store_path, proxy)
    if session.authenticated:
        typer.echo("Already authenticated")
        return
    url = asyncio.run(session.login(redirect_uri))
    if url is None:
        typer.echo(session.error, err=True)
        raise typer.Exit(1)
    typer.echo(url)


@app.command("token")
def token(
    auth_code: str = typer.Argument(..., help="auth_code from the login redirect"),
    redirect_uri: str = typer.Option(DEFAULT_REDIRECT, "--redirect-uri", help="Registered redirect URI"),
    proxy: str = typer.Option(settings.proxy_base_url, "--proxy", help="Feed bridge base URL"),
    store_path: Path = typer.Option(Path(settings.store_path), "--store", help="Local store file"),
) -> None:
    """Exchange an auth code for an access token and store it."""

    session = _session(store_path, proxy)
    if session.authenticated:
        typer.echo("Already authenticated")
        return
    if not asyncio.run(session.handle_redirect(auth_code, redirect_uri)):
        typer.echo(session.error or "Authentication failed", err=True)
        raise typer.Exit(1)
    typer.echo("Authenticated")


@app.command("logout")
def logout(
    store_path: Path = typer.Option(Path(settings.store_path), "--store", help="Local store file"),
) -> None:
    """Forget the stored access token."""

    _session(store_path, None).logout()
    typer.echo("Logged out")
