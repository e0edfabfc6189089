"""
Countdown - The recurring local tick behind the round timer.

The tick is cosmetic. It only drives `seconds_remaining` down to zero and
never resolves a round.
"""

from __future__ import annotations
from typing import Callable, Protocol
import asyncio

from ..config import DEFAULT_TICK_INTERVAL


class Ticker(Protocol):
    """Calls a callback once per interval until stopped."""

    @property
    def running(self) -> bool:
        ...

    def start(self, callback: Callable[[], None]) -> None:
        ...

    def stop(self) -> None:
        ...


class AsyncioTicker:
    """
    Ticker driven by the running event loop.

    The callback runs on the loop thread, so it never interleaves with
    transport message handling.
    """

    def __init__(self, interval: float = DEFAULT_TICK_INTERVAL):
        self.interval = interval
        self._callback: Callable[[], None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self, callback: Callable[[], None]) -> None:
        """(Re)start ticking; the first tick fires one interval from now."""
        self.stop()
        self._loop = asyncio.get_running_loop()
        self._callback = callback
        self._schedule()

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._callback = None

    def _schedule(self) -> None:
        self._timer = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        callback = self._callback
        if callback is None:
            return
        # Reschedule first so the callback can stop the ticker
        self._schedule()
        callback()
