import pytest
from fastapi.testclient import TestClient

from auratrade.apps.api.main import create_app
from auratrade.bridge import ConfigurationError, FyersAuthError, UpstreamEvent

from conftest import FakeFeed, make_tick


class StubAuth:
    app_id = "APP-100"

    def __init__(self, fail=False):
        self.fail = fail
        self.exchanged = []

    def login_url(self, redirect_uri):
        return f"https://broker.test/login?redirect_uri={redirect_uri}"

    async def access_token(self, auth_code, redirect_uri=None):
        self.exchanged.append((auth_code, redirect_uri))
        if self.fail:
            raise FyersAuthError("invalid auth code")
        return {"s": "ok", "access_token": "tok-123"}


def _client(auth=None, feeds=None, **kwargs):
    feeds = feeds if feeds is not None else []

    def factory(token):
        feed = FakeFeed(token, [UpstreamEvent.status("connected"), UpstreamEvent("tick", make_tick())])
        feeds.append(feed)
        return feed

    return TestClient(create_app(auth or StubAuth(), factory, **kwargs))


def test_health_and_metrics():
    client = _client()
    assert client.get("/health").json() == {"status": "ok"}
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "api_request_count" in resp.text


def test_login_url():
    client = _client()
    resp = client.post("/get-login-url", json={"redirectUri": "http://localhost:5173/"})
    assert resp.status_code == 200
    assert resp.json()["loginUrl"].startswith("https://broker.test/login")

    resp = client.post("/get-login-url", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "redirectUri is required"}


def test_access_token_exchange():
    auth = StubAuth()
    client = _client(auth)
    resp = client.post("/get-access-token", json={"authCode": "abc", "redirectUri": "http://x/"})
    assert resp.status_code == 200
    assert resp.json()["access_token"] == "tok-123"
    assert auth.exchanged == [("abc", "http://x/")]

    resp = client.post("/get-access-token", json={"redirectUri": "http://x/"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "authCode is required"}


def test_access_token_failure_maps_to_500():
    client = _client(StubAuth(fail=True))
    resp = client.post("/get-access-token", json={"authCode": "abc"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "invalid auth code"}


@pytest.mark.parametrize("path", ["/", "/ws"])
def test_websocket_relays_ticks(path):
    feeds = []
    client = _client(feeds=feeds)
    with client.websocket_connect(path) as ws:
        ws.send_json({"type": "subscribe", "instrument": "NSE:SBIN-EQ", "accessToken": "tok"})
        msg = ws.receive_json()
    assert msg["type"] == "tick"
    assert msg["data"]["price"] == 100.0
    assert feeds[0].token == "tok"


def test_websocket_status_messages_when_enabled():
    client = _client(status_messages=True)
    with client.websocket_connect("/") as ws:
        ws.send_json({"type": "subscribe", "instrument": "NSE:SBIN-EQ", "accessToken": "tok"})
        first = ws.receive_json()
        second = ws.receive_json()
    assert first == {"type": "status", "data": {"state": "connected", "detail": None}}
    assert second["type"] == "tick"


def test_websocket_ignores_bad_frames_then_subscribes():
    client = _client()
    with client.websocket_connect("/") as ws:
        ws.send_text("{oops")
        ws.send_json({"type": "subscribe", "instrument": "NSE:SBIN-EQ", "accessToken": "tok"})
        assert ws.receive_json()["type"] == "tick"


def test_missing_credentials_refuse_to_start(monkeypatch):
    from auratrade.config import settings

    monkeypatch.setattr(settings, "fyers_app_id", None)
    monkeypatch.setattr(settings, "fyers_secret_key", None)
    with pytest.raises(ConfigurationError):
        create_app()
