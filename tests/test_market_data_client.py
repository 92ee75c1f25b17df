import asyncio
import json

import pytest

from auratrade.client.market_data import MarketDataClient, websocket_url
from auratrade.market import SnapshotStore, TickBuffer

from conftest import make_snapshot, make_tick


class FakeSocket:
    def __init__(self, messages=()):
        self.queue: asyncio.Queue = asyncio.Queue()
        for m in messages:
            self.queue.put_nowait(m)
        self.sent = []
        self.closed = False

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def close(self):
        self.closed = True

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.queue.get()
        if item is None:
            raise StopAsyncIteration
        return item


def _client(socket, token="tok"):
    async def connect(url):
        return socket

    return MarketDataClient("NSE:SBIN-EQ", token, TickBuffer(), SnapshotStore(), url="ws://bridge.test", connect=connect)


def _msg(kind, data):
    return json.dumps({"type": kind, "data": data})


def test_websocket_url():
    assert websocket_url("http://localhost:3000") == "ws://localhost:3000"
    assert websocket_url("https://bridge.example.com") == "wss://bridge.example.com"
    assert websocket_url("ws://already") == "ws://already"


def test_handle_message_routes_by_type():
    client = MarketDataClient("NSE:SBIN-EQ", "tok", TickBuffer(), SnapshotStore(), url="ws://x")
    client.handle_message(_msg("tick", make_tick().model_dump()))
    client.handle_message(_msg("snapshot", make_snapshot().model_dump()))
    client.handle_message(_msg("status", {"state": "connected", "detail": None}))
    client.handle_message(_msg("other", {}))
    client.handle_message("not json")
    client.handle_message(_msg("tick", {"price": "abc"}))

    assert len(client.ticks) == 1
    assert client.snapshots.ohlcv.close == 99.0
    assert client.last_status == {"state": "connected", "detail": None}


@pytest.mark.asyncio
async def test_connect_resets_subscribes_and_receives():
    socket = FakeSocket([_msg("tick", make_tick(price=7.0).model_dump())])
    client = _client(socket)
    client.ticks.append(make_tick(price=1.0))
    client.snapshots.replace(make_snapshot())

    assert await client.connect()
    assert client.connected
    assert socket.sent == [{"type": "subscribe", "instrument": "NSE:SBIN-EQ", "accessToken": "tok"}]
    assert client.snapshots.current is None

    await asyncio.sleep(0)
    assert [t.price for t in client.ticks.snapshot()] == [7.0]

    # a second connect while open is refused
    assert not await client.connect()

    await client.disconnect()
    assert socket.closed
    assert not client.connected


@pytest.mark.asyncio
async def test_connect_requires_token():
    client = _client(FakeSocket(), token=None)
    assert not await client.connect()
    assert not client.connected


@pytest.mark.asyncio
async def test_server_close_marks_disconnected():
    socket = FakeSocket()
    client = _client(socket)
    await client.connect()
    socket.queue.put_nowait(None)
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert not client.connected


def test_second_snapshot_replaces_first():
    client = MarketDataClient("NSE:SBIN-EQ", "tok", TickBuffer(), SnapshotStore(), url="ws://x")
    first = make_snapshot(close=99.0).model_dump()
    second = {
        "bids": [],
        "asks": [{"price": 101.0, "quantity": 3.0, "orders": 1}],
        "ohlcv": {"open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5, "volume": 10.0},
    }
    client.handle_message(_msg("snapshot", first))
    assert client.snapshots.current.model_dump() == first
    client.handle_message(_msg("snapshot", second))
    assert client.snapshots.current.model_dump() == second


@pytest.mark.asyncio
async def test_connect_failure_is_logged_not_raised():
    async def refuse(url):
        raise ConnectionRefusedError("bridge down")

    client = MarketDataClient(
        "NSE:SBIN-EQ", "tok", TickBuffer(), SnapshotStore(), url="ws://bridge.test", connect=refuse
    )
    assert not await client.connect()
    assert not client.connected


@pytest.mark.asyncio
async def test_subscribe_failure_closes_socket():
    class BrokenSocket(FakeSocket):
        async def send(self, data):
            raise ConnectionResetError("reset")

    socket = BrokenSocket()
    client = _client(socket)
    assert not await client.connect()
    assert socket.closed
    assert not client.connected
