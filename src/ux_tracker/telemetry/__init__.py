"""Telemetry events, milestones and batching."""

from .batcher import EventBatcher
from .events import Event, EventKind
from .milestones import MilestoneTracker

__all__ = [
    "Event",
    "EventKind",
    "EventBatcher",
    "MilestoneTracker",
]
