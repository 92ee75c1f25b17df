"""Client side market state: tick window and depth snapshot."""
from .ticks import TickBuffer
from .snapshot import SnapshotStore

__all__ = ["TickBuffer", "SnapshotStore"]
