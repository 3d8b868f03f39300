"""Keystroke debouncing for search input.

Each trigger() cancels the pending timer and starts a new one, so a burst
of keystrokes produces a single call with the last value. A cancelled
timer never reaches the callback, so no fetch or cache lookup happens for
discarded intermediate queries. Once a timer has fired its call runs to
completion; stale results are the caller's concern.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class SearchDebouncer:
    def __init__(
        self,
        delay_ms: int,
        callback: Callable[[str], Awaitable[None]],
    ) -> None:
        self._delay = delay_ms / 1000
        self._callback = callback
        self._timer: asyncio.TimerHandle | None = None
        self._waiter: asyncio.Future | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def trigger(self, query: str) -> asyncio.Future:
        """Schedule callback(query) after the quiet period.

        Must be called from a running event loop.

        Returns:
            A future that resolves once the callback has finished, or is
            cancelled if a later trigger() or cancel() supersedes it.
        """
        self.cancel()
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._waiter = waiter
        self._timer = loop.call_later(self._delay, self._fire, query, waiter)
        return waiter

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.debug("Cancelled pending debounced search")
        if self._waiter is not None and not self._waiter.done():
            self._waiter.cancel()
        self._waiter = None

    def _fire(self, query: str, waiter: asyncio.Future) -> None:
        self._timer = None
        self._waiter = None
        task = asyncio.ensure_future(self._callback(query))
        task.add_done_callback(lambda done: _settle(waiter, done))


def _settle(waiter: asyncio.Future, task: asyncio.Future) -> None:
    if waiter.done():
        return
    if task.cancelled():
        waiter.cancel()
    elif task.exception() is not None:
        waiter.set_exception(task.exception())
    else:
        waiter.set_result(None)
