"""Leading-edge throttle for high-frequency UI signals."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ..clock import Clock


@dataclass
class Throttle:
    """
    Wraps a callable so it runs at most once per min_interval_ms.

    The first call runs immediately. Calls arriving before min_interval_ms has
    passed since the last executed call are dropped, not queued or delayed.
    """
    fn: Callable[..., Any]
    min_interval_ms: int
    clock: Clock

    _last_run: int | None = field(default=None, init=False)

    # Stats
    _executed: int = field(default=0, init=False)
    _dropped: int = field(default=0, init=False)

    def __post_init__(self):
        if self.min_interval_ms < 0:
            raise ValueError("min_interval_ms must not be negative")

    def __call__(self, *args: Any, **kwargs: Any) -> bool:
        """Run the wrapped callable if allowed. Returns True if it ran."""
        now = self.clock.now_ms()
        if self._last_run is not None and now - self._last_run < self.min_interval_ms:
            self._dropped += 1
            return False

        self._last_run = now
        self._executed += 1
        self.fn(*args, **kwargs)
        return True

    def reset(self) -> None:
        """Forget the last run so the next call executes immediately."""
        self._last_run = None

    @property
    def stats(self) -> dict:
        """Throttle statistics."""
        return {
            "min_interval_ms": self.min_interval_ms,
            "executed": self._executed,
            "dropped": self._dropped,
        }


def throttle(fn: Callable[..., Any], min_interval_ms: int, clock: Clock) -> Throttle:
    """
    Limit how often fn runs.

    Usage:
        on_move = throttle(record_move, 100, clock)
        source.subscribe("mousemove", on_move)
    """
    return Throttle(fn=fn, min_interval_ms=min_interval_ms, clock=clock)
