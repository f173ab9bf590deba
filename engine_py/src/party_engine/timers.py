"""
Cancellable timers on the asyncio event loop.

Every countdown, grace period and delayed round/reset is a TimerHandle owned by
the room, player or registry entry that scheduled it. Cancelling a handle is
idempotent and guarantees the callback never runs afterwards.
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    cancelled: bool

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class TaskTimer:
    """A one-shot or repeating callback driven by an asyncio task."""

    def __init__(self, delay: float, callback: Callable[[], None], repeat: bool = False,
                 name: Optional[str] = None):
        self.delay = delay
        self.callback = callback
        self.repeat = repeat
        self.name = name or getattr(callback, "__name__", "timer")
        self.cancelled = False
        self._task: Optional[asyncio.Task] = None

    def start(self) -> 'TaskTimer':
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self):
        try:
            while not self.cancelled:
                await asyncio.sleep(self.delay)
                # cancel() may land after the sleep finished but before we resume
                if self.cancelled:
                    return
                try:
                    self.callback()
                except Exception as e:
                    logger.exception(f"Timer {self.name} callback failed: {e}")
                if not self.repeat:
                    self.cancelled = True
        except asyncio.CancelledError:
            logger.debug(f"Timer {self.name} cancelled")


class AsyncioScheduler:
    """Schedules timers on the running event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskTimer:
        return TaskTimer(delay, callback).start()

    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskTimer:
        return TaskTimer(interval, callback, repeat=True).start()
