"""
Expiring timers keyed by (session id, purpose).

* scheduling a key that is already armed replaces the previous timer
* a fired timer is removed from the registry before its callback runs
* callbacks are coroutines, run as tasks on the event loop; they must re-check their own condition
"""

import asyncio
from enum import StrEnum
from typing import Awaitable, Callable

from loguru import logger

TimerCallback = Callable[[], Awaitable[None]]


class TimerPurpose(StrEnum):
    DRAW_OFFER = "draw_offer"
    DISCONNECT = "disconnect"


TimerKey = tuple[str, TimerPurpose]


class TimerRegistry:
    def __init__(self) -> None:
        self._handles: dict[TimerKey, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task] = set()

    def schedule(
        self,
        session_id: str,
        purpose: TimerPurpose,
        delay_s: float,
        callback: TimerCallback,
    ) -> None:
        """Must be called from within the running event loop."""
        key = (session_id, purpose)
        self.cancel(session_id, purpose)
        loop = asyncio.get_running_loop()
        self._handles[key] = loop.call_later(delay_s, self._fire, key, callback)
        logger.debug("Armed {} timer for session {} ({}s)", purpose, session_id, delay_s)

    def cancel(self, session_id: str, purpose: TimerPurpose) -> bool:
        handle = self._handles.pop((session_id, purpose), None)
        if handle is None:
            return False
        handle.cancel()
        logger.debug("Cancelled {} timer for session {}", purpose, session_id)
        return True

    def cancel_session(self, session_id: str) -> None:
        for key in [key for key in self._handles if key[0] == session_id]:
            self.cancel(*key)

    def cancel_all(self) -> None:
        for key in list(self._handles):
            self.cancel(*key)

    def active(self, session_id: str, purpose: TimerPurpose) -> bool:
        return (session_id, purpose) in self._handles

    async def drain(self) -> None:
        """Wait for callbacks that already fired (used at shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _fire(self, key: TimerKey, callback: TimerCallback) -> None:
        self._handles.pop(key, None)
        logger.debug("{} timer fired for session {}", key[1], key[0])
        task = asyncio.create_task(callback())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Timer callback failed")
