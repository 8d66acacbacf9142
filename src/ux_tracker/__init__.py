"""Embeddable client-side UI telemetry collector."""

from .config import TrackerConfig
from .consent.gate import Decision
from .state import ConsentState, PipelineState
from .telemetry.events import Event, EventKind
from .tracker import Tracker

__version__ = "0.1.0"

__all__ = [
    "ConsentState",
    "Decision",
    "Event",
    "EventKind",
    "PipelineState",
    "Tracker",
    "TrackerConfig",
]
