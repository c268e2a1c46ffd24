import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicHandle:
    """Repeats ``callback`` every ``interval`` seconds until cancelled."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._timer: Optional[asyncio.TimerHandle] = None
        self.cancelled = False
        self._arm()

    def _arm(self) -> None:
        self._timer = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self.cancelled:
            return
        # re-arm first so the callback may cancel this handle
        self._arm()
        self._callback()

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    @property
    def pending(self) -> bool:
        """True while a loop timer is still scheduled for this handle."""
        return self._timer is not None and not self._timer.cancelled()


class Scheduler:
    """Cancellable timers and background tasks for interview sessions."""

    def call_every(self, interval: float, callback: Callable[[], None]):
        raise NotImplementedError

    def spawn(self, coro: Awaitable) -> asyncio.Task:
        raise NotImplementedError


class AsyncioScheduler(Scheduler):
    """Scheduler bound to the running event loop of the ASGI server."""

    def call_every(self, interval: float, callback: Callable[[], None]) -> PeriodicHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return PeriodicHandle(asyncio.get_running_loop(), interval, callback)

    def spawn(self, coro: Awaitable) -> asyncio.Task:
        return asyncio.get_running_loop().create_task(coro)
