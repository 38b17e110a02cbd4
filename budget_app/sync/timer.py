"""Single-shot cancellable timer used to debounce remote writes."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Optional


class DebounceTimer:
    """
    Runs a coroutine function once `delay` seconds after the last arm().

    Arming again before the delay has elapsed restarts the countdown.
    The callback runs as a task on the loop that was running at arm().
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[None]]):
        if delay < 0:
            raise ValueError("Debounce delay cannot be negative")
        self._delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """True while armed and not yet fired."""
        return self._handle is not None

    @property
    def running(self) -> bool:
        """True while the callback of the last firing is still running."""
        return self._task is not None and not self._task.done()

    def arm(self) -> None:
        """Start the countdown, superseding any earlier one."""
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def disarm(self) -> None:
        """Stop the countdown. A callback already running is left alone."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def cancel(self) -> None:
        """Disarm the timer and stop a callback that is still running."""
        self.disarm()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the callback of the last firing to finish."""
        if self._task is not None:
            await asyncio.shield(self._task)

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.get_running_loop().create_task(self._callback())
