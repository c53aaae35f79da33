from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol


logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Runs a callback once after a delay, on the session's single thread."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None: ...


@dataclass(order=True, slots=True)
class _Pending:
    due_ms: int
    seq: int
    callback: Callable[[], None] = field(compare=False)


class ManualScheduler:
    """Virtual-clock scheduler.

    Nothing fires until `advance()` moves the clock. Callbacks run in due order
    (ties in scheduling order); callbacks scheduled while advancing fire in the
    same call if they fall due before the new time.
    """

    def __init__(self) -> None:
        self.now_ms = 0
        self._queue: list[_Pending] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        heapq.heappush(self._queue, _Pending(self.now_ms + delay_ms, next(self._seq), callback))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def advance(self, ms: int) -> int:
        """Move the clock forward by `ms` and fire what fell due. Returns the number fired."""

        if ms < 0:
            raise ValueError("ms must be >= 0")
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0].due_ms <= target:
            item = heapq.heappop(self._queue)
            self.now_ms = item.due_ms
            item.callback()
            fired += 1
        self.now_ms = target
        return fired

    def run_all(self) -> int:
        fired = 0
        while self._queue:
            fired += self.advance(self._queue[0].due_ms - self.now_ms)
        return fired


class AsyncioScheduler:
    """Schedules callbacks on the running asyncio loop (FastAPI's loop in the service)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: set[asyncio.TimerHandle] = set()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")

        handle: asyncio.TimerHandle | None = None

        def _run() -> None:
            if handle is not None:
                self._handles.discard(handle)
            callback()

        handle = self._get_loop().call_later(delay_ms / 1000.0, _run)
        self._handles.add(handle)

    def cancel_all(self) -> None:
        for handle in self._handles:
            handle.cancel()
        if self._handles:
            logger.debug("Cancelled %d pending timer(s)", len(self._handles))
        self._handles.clear()
