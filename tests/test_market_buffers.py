import pytest

from auratrade.market import SnapshotStore, TickBuffer

from conftest import make_snapshot, make_tick


def test_tick_buffer_evicts_oldest():
    buf = TickBuffer(maxlen=3)
    for i in range(5):
        buf.append(make_tick(price=100 + i, ts=i))
    assert len(buf) == 3
    assert [t.price for t in buf.snapshot()] == [102, 103, 104]
    assert buf.latest().price == 104


def test_tick_buffer_snapshot_is_a_copy():
    buf = TickBuffer()
    buf.append(make_tick())
    snap = buf.snapshot()
    buf.append(make_tick(price=101))
    assert len(snap) == 1
    assert len(buf) == 2


def test_tick_buffer_reset_and_empty_latest():
    buf = TickBuffer()
    buf.append(make_tick())
    buf.reset()
    assert len(buf) == 0
    assert buf.latest() is None


def test_tick_buffer_default_cap():
    buf = TickBuffer()
    for i in range(250):
        buf.append(make_tick(ts=i))
    assert len(buf) == 200
    assert buf.snapshot()[0].timestamp == 50


def test_tick_buffer_rejects_non_positive_cap():
    with pytest.raises(ValueError):
        TickBuffer(0)


def test_snapshot_store_replaces_wholesale():
    store = SnapshotStore()
    assert store.current is None
    assert store.ohlcv is None

    first = make_snapshot(close=99.0)
    second = make_snapshot(close=120.0)
    store.replace(first)
    store.replace(second)
    assert store.current is second
    assert store.ohlcv.close == 120.0

    store.reset()
    assert store.current is None
