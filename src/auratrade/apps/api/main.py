# src/auratrade/apps/api/main.py
"""Feed bridge HTTP/WebSocket server.

Routes
------
``POST /get-login-url``      broker login URL for a redirect URI
``POST /get-access-token``   exchange an auth code for an access token
``GET  /health``             liveness probe
``GET  /metrics``            Prometheus exposition
``WS   /`` and ``/ws``       market-data relay (one upstream per connection)

Run with ``uvicorn --factory auratrade.apps.api.main:create_app`` or
``auratrade serve``.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Callable

from fastapi import FastAPI, Response, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel
from starlette.requests import Request
from starlette.websockets import WebSocketDisconnect

from ...bridge.fyers_auth import FyersAuth, FyersAuthError
from ...bridge.session import BridgeSession
from ...bridge.upstream import FyersFeed, UpstreamFeed
from ...config import settings
from ...utils.metrics import BRIDGE_CONNECTIONS, REQUEST_COUNT, REQUEST_LATENCY

logger = logging.getLogger(__name__)


class LoginUrlRequest(BaseModel):
    redirectUri: str | None = None


class AccessTokenRequest(BaseModel):
    authCode: str | None = None
    redirectUri: str | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    fyers_auth: FyersAuth | None = None,
    feed_factory: Callable[[str], UpstreamFeed] | None = None,
    *,
    status_messages: bool | None = None,
) -> FastAPI:
    """Build the bridge application.

    Without injected collaborators the Fyers credentials are read from the
    settings; missing credentials raise :class:`ConfigurationError`.
    """

    auth = fyers_auth or FyersAuth.from_settings()
    make_feed = feed_factory or (lambda token: FyersFeed(token, app_id=auth.app_id))
    send_status = settings.bridge_status_messages if status_messages is None else status_messages

    app = FastAPI(title="auratrade feed bridge")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins, allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
    )

    @app.middleware("http")
    async def _metrics_middleware(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        endpoint = request.url.path
        REQUEST_LATENCY.labels(request.method, endpoint).observe(elapsed)
        REQUEST_COUNT.labels(request.method, endpoint, response.status_code).inc()
        return response

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # --- AUTHENTICATION ROUTES ---
    @app.post("/get-login-url")
    def get_login_url(req: LoginUrlRequest):
        if not req.redirectUri:
            return _error(400, "redirectUri is required")
        login_url = auth.login_url(req.redirectUri)
        logger.info("Generated Login URL: %s", login_url)
        return {"loginUrl": login_url}

    @app.post("/get-access-token")
    async def get_access_token(req: AccessTokenRequest):
        if not req.authCode:
            return _error(400, "authCode is required")
        try:
            body = await auth.access_token(req.authCode, req.redirectUri)
        except FyersAuthError as exc:
            logger.error("Error getting access token: %s", exc)
            return _error(500, str(exc) or "Failed to get access token")
        logger.info("Access token issued")
        return body

    # --- WEBSOCKET RELAY FOR MARKET DATA ---
    async def market_feed(ws: WebSocket):
        await ws.accept()
        BRIDGE_CONNECTIONS.inc()
        logger.info("Client connected to WebSocket proxy")

        async def send(msg: dict) -> None:
            await ws.send_text(json.dumps(msg))

        session = BridgeSession(send, make_feed, status_messages=send_status)
        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                await session.handle_frame(raw)
        except WebSocketDisconnect:
            pass
        finally:
            logger.info("Client disconnected from WebSocket proxy")
            await session.close()
            BRIDGE_CONNECTIONS.dec()

    app.add_api_websocket_route("/", market_feed)
    app.add_api_websocket_route("/ws", market_feed)

    return app
