"""Shared mutable state of one tracking pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .telemetry.events import Event


class ConsentState(str, Enum):
    """Consent decision. Moves out of UNKNOWN at most once per page lifetime."""
    UNKNOWN = "unknown"
    ACCEPTED = "accepted"
    DECLINED = "declined"


@dataclass
class PipelineState:
    """
    Everything the pipeline components share, owned in one place.

    Components hold a reference to the same instance. All mutation happens on
    the event loop thread, so no locking is involved.
    """
    identity: str | None = None
    session_id: str | None = None
    consent: ConsentState = ConsentState.UNKNOWN
    tracking_active: bool = False

    # Set while the page is hidden / being torn down
    unloading: bool = False

    queue: list[Event] = field(default_factory=list)
    milestones: set[int] = field(default_factory=set)

    # Highest timestamp handed out so far
    last_timestamp: int = 0

    def init(self, identity: str | None) -> None:
        """Start a fresh page lifetime for the given identity."""
        self.reset()
        self.identity = identity

    def reset(self) -> None:
        """Drop everything page-scoped. Persisted storage is not touched."""
        self.session_id = None
        self.consent = ConsentState.UNKNOWN
        self.tracking_active = False
        self.unloading = False
        self.queue.clear()
        self.milestones.clear()
        self.last_timestamp = 0

    def set_consent(self, decision: ConsentState) -> None:
        if decision is ConsentState.UNKNOWN:
            raise ValueError("Consent can only move to accepted or declined")
        if self.consent is not ConsentState.UNKNOWN and self.consent is not decision:
            raise ValueError(
                f"Consent already {self.consent.value}, cannot change to {decision.value}"
            )
        self.consent = decision

    def next_timestamp(self, now_ms: int) -> int:
        """Timestamp for a new event, never lower than the previous one."""
        ts = max(int(now_ms), self.last_timestamp)
        self.last_timestamp = ts
        return ts

    @property
    def decided(self) -> bool:
        return self.consent is not ConsentState.UNKNOWN

    @property
    def capture_allowed(self) -> bool:
        return self.consent is ConsentState.ACCEPTED
