"""Event queue and batching for delivery to the collector."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from ..clock import Clock, TimerHandle
from .events import Event

if TYPE_CHECKING:
    from ..state import PipelineState


logger = logging.getLogger(__name__)

# Receives a batch and whether the page is being unloaded. Must not block.
DeliverFn = Callable[[list[Event], bool], None]


@dataclass
class EventBatcher:
    """
    Buffers captured events and hands them to delivery in batches.

    A batch is flushed when:
    - the queue reaches batch_size
    - the periodic timer fires
    - the page becomes hidden

    Flushing takes a snapshot and clears the queue before delivery starts,
    so a slow or failed send can never transmit the same events twice.
    Failed batches are dropped, not re-queued.
    """
    state: PipelineState
    clock: Clock

    # Delivery function: fire-and-forget
    deliver: DeliverFn | None = None

    batch_size: int = 5
    flush_interval_ms: int = 2000

    # Internal state
    _timer: TimerHandle | None = field(default=None, init=False)
    _last_flush: int = field(default=0, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._stats = {
            "batches_sent": 0,
            "events_sent": 0,
            "empty_flushes": 0,
            "delivery_errors": 0,
        }

    def enqueue(self, event: Event) -> None:
        """Append an event; flush immediately if the batch is full."""
        self.state.queue.append(event)

        if len(self.state.queue) >= self.batch_size:
            self.flush()

    def flush(self, unloading: bool | None = None) -> int:
        """
        Hand everything queued to delivery. Returns the number of events sent.

        No-op on an empty queue: an empty batch is never delivered.
        """
        if unloading is None:
            unloading = self.state.unloading

        if not self.state.queue:
            self._stats["empty_flushes"] += 1
            return 0

        batch = list(self.state.queue)
        self.state.queue.clear()
        self._last_flush = self.clock.now_ms()

        if self.deliver is None:
            logger.warning(f"No delivery configured, discarding batch of {len(batch)} events")
            return 0

        try:
            self.deliver(batch, unloading)
        except Exception as e:
            logger.error(f"Failed to deliver batch of {len(batch)} events: {e}")
            self._stats["delivery_errors"] += 1
            return 0

        self._stats["batches_sent"] += 1
        self._stats["events_sent"] += len(batch)
        return len(batch)

    def on_visibility_change(self, hidden: bool) -> None:
        """Page visibility changed. Hidden means the page may be going away."""
        self.state.unloading = hidden
        if hidden:
            self.flush(unloading=True)

    def start_timer(self) -> None:
        """Start the periodic flush. Calling again while running is a no-op."""
        if self._timer is not None:
            return
        self._timer = self.clock.call_every(self.flush_interval_ms, self._on_tick)
        logger.info(f"Event batcher timer started (interval={self.flush_interval_ms}ms)")

    def stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_tick(self) -> None:
        self.flush()

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def buffer_size(self) -> int:
        """Current queue length."""
        return len(self.state.queue)

    @property
    def stats(self) -> dict:
        """Get batcher statistics."""
        return {
            **self._stats,
            "buffer_size": self.buffer_size,
            "ms_since_flush": self.clock.now_ms() - self._last_flush,
        }
