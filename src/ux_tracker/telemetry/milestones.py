"""Scroll depth milestone tracking."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class MilestoneTracker:
    """
    Turns a continuous scroll percentage into once-only threshold crossings.

    The fired set is shared with the pipeline state and only grows until the
    page view ends. Scrolling back up never un-fires a threshold.
    """
    thresholds: tuple[int, ...] = (25, 50, 75, 90)
    fired: set[int] = field(default_factory=set)

    def __post_init__(self):
        ordered = tuple(sorted(set(int(t) for t in self.thresholds)))
        if not ordered:
            raise ValueError("At least one milestone threshold is required")
        if ordered[0] < 1 or ordered[-1] > 100:
            raise ValueError(f"Milestone thresholds must lie within 1..100, got {ordered}")
        self.thresholds = ordered

    def observe(self, percent: float) -> list[int]:
        """
        Record a scroll position. Returns the newly crossed thresholds in
        ascending order; each threshold is returned at most once.
        """
        crossed = []
        for threshold in self.thresholds:
            if threshold > percent:
                break
            if threshold not in self.fired:
                self.fired.add(threshold)
                crossed.append(threshold)
        return crossed

    @property
    def remaining(self) -> tuple[int, ...]:
        return tuple(t for t in self.thresholds if t not in self.fired)
