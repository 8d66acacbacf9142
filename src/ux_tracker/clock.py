"""Clock and timer sources for the tracking pipeline."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable


logger = logging.getLogger(__name__)


class TimerHandle:
    """Handle for a scheduled callback. Cancelling is idempotent."""

    def __init__(self) -> None:
        self.cancelled = False
        self._loop_handle: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._loop_handle is not None:
            self._loop_handle.cancel()
            self._loop_handle = None


class Clock(ABC):
    """
    Source of the current time and of deferred / periodic callbacks.

    All times are integer milliseconds.
    """

    @abstractmethod
    def now_ms(self) -> int:
        """Current wall-clock time in ms since the epoch."""
        ...

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay_ms."""
        ...

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Run callback every interval_ms until the handle is cancelled."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        handle = TimerHandle()

        def tick() -> None:
            if handle.cancelled:
                return
            try:
                callback()
            except Exception as e:
                logger.error(f"Periodic callback failed: {e}")
            if not handle.cancelled:
                inner = self.call_later(interval_ms, tick)
                handle._loop_handle = inner._loop_handle

        first = self.call_later(interval_ms, tick)
        handle._loop_handle = first._loop_handle
        return handle


class LoopClock(Clock):
    """Clock backed by the running asyncio event loop."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        loop = asyncio.get_running_loop()
        handle = TimerHandle()
        handle._loop_handle = loop.call_later(delay_ms / 1000.0, callback)
        return handle


@dataclass
class ManualClock(Clock):
    """
    Clock that only moves when told to.

    Used for deterministic tests and for replaying recorded sessions, where
    event timestamps come from the recording rather than from wall time.
    """
    start_ms: int = 0

    _now: int = field(default=0, init=False)
    _pending: list = field(default_factory=list, init=False)
    _seq: itertools.count = field(default_factory=itertools.count, init=False)

    def __post_init__(self):
        self._now = self.start_ms

    def now_ms(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        heapq.heappush(self._pending, (self._now + max(delay_ms, 0), next(self._seq), handle, callback))
        return handle

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        handle = TimerHandle()

        def tick() -> None:
            if handle.cancelled:
                return
            try:
                callback()
            except Exception as e:
                logger.error(f"Periodic callback failed: {e}")
            self._schedule(interval_ms, tick, handle)

        self._schedule(interval_ms, tick, handle)
        return handle

    def _schedule(self, delay_ms: int, callback: Callable[[], None], handle: TimerHandle) -> None:
        heapq.heappush(self._pending, (self._now + delay_ms, next(self._seq), handle, callback))

    def advance(self, delta_ms: int) -> None:
        """Move time forward, firing every callback that falls due in order."""
        self.advance_to(self._now + delta_ms)

    def advance_to(self, target_ms: int) -> None:
        if target_ms < self._now:
            # Time never runs backwards on a manual clock.
            return
        while self._pending and self._pending[0][0] <= target_ms:
            due, _, handle, callback = heapq.heappop(self._pending)
            if handle.cancelled:
                continue
            self._now = due
            callback()
        self._now = target_ms

    @property
    def pending(self) -> int:
        """Number of live scheduled callbacks."""
        return sum(1 for entry in self._pending if not entry[2].cancelled)
