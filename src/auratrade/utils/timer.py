"""Cancellable timer abstraction.

Components that poll on an interval receive a :class:`Timer` at construction
instead of calling :mod:`asyncio` directly, so tests can drive them with a
manual clock rather than real sleeps.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timer(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopTimer:
    """:class:`Timer` backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


__all__ = ["Timer", "TimerHandle", "LoopTimer"]
