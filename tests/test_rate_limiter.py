"""Tests for the leading-edge throttle."""

import pytest

from ux_tracker.clock import ManualClock
from ux_tracker.governance.rate_limiter import throttle


class TestThrottle:
    def test_leading_edge(self):
        clock = ManualClock()
        executed_at = []
        limited = throttle(lambda: executed_at.append(clock.now_ms()), 100, clock)

        for t in (0, 30, 60, 110):
            clock.advance_to(t)
            limited()

        assert executed_at == [0, 110]
        assert limited.stats["executed"] == 2
        assert limited.stats["dropped"] == 2

    def test_dropped_calls_are_not_deferred(self):
        clock = ManualClock()
        calls = []
        limited = throttle(calls.append, 100, clock)

        assert limited("first")
        assert not limited("second")

        clock.advance(500)
        # Nothing queued up while waiting
        assert calls == ["first"]

    def test_interval_measured_from_last_execution(self):
        clock = ManualClock()
        calls = []
        limited = throttle(lambda: calls.append(clock.now_ms()), 100, clock)

        for t in (0, 90, 100, 150, 199, 200):
            clock.advance_to(t)
            limited()

        assert calls == [0, 100, 200]

    def test_passes_arguments(self):
        clock = ManualClock()
        seen = []
        limited = throttle(lambda x, y=0: seen.append((x, y)), 10, clock)
        limited(1, y=2)
        assert seen == [(1, 2)]

    def test_reset(self):
        clock = ManualClock()
        calls = []
        limited = throttle(lambda: calls.append(1), 100, clock)
        limited()
        limited.reset()
        limited()
        assert len(calls) == 2

    def test_zero_interval_never_drops(self):
        clock = ManualClock()
        calls = []
        limited = throttle(lambda: calls.append(1), 0, clock)
        for _ in range(5):
            limited()
        assert len(calls) == 5

    def test_negative_interval(self):
        with pytest.raises(ValueError):
            throttle(lambda: None, -1, ManualClock())
