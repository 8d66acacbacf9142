"""Payload serializers for the ingestion endpoint.

Two deployment variants of the collector expect different bodies. The
serializer is picked by configuration; transports never branch on shape.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel

from ..capture.inputs import PageInfo
from ..telemetry.events import Event, EventKind


@dataclass(frozen=True)
class BatchContext:
    """Everything a serializer may put into one payload."""
    session_id: str | None
    identity: str | None
    events: list[Event]
    sent_at: int
    page: PageInfo | None = None


class GenericPayload(BaseModel):
    session_id: str | None
    email: str | None
    events: list[dict[str, Any]]

    # Optional envelope context
    url: str | None = None
    timestamp: int | None = None
    user_agent: str | None = None


class Movement(BaseModel):
    x: int | float
    y: int | float
    time: int


class MouseMovementPayload(BaseModel):
    session_id: str | None
    email: str | None
    movements: list[Movement]
    event_type: Literal["batch_mouse_movements"] = "batch_mouse_movements"


class PayloadSerializer(ABC):
    """Turns a batch into a JSON-ready dict, or None if nothing should be sent."""

    name: str = ""

    @abstractmethod
    def serialize(self, batch: BatchContext) -> dict[str, Any] | None:
        ...


@dataclass
class GenericSerializer(PayloadSerializer):
    """
    {session_id, email, events: [{type, timestamp, page, ...attributes}]}
    """
    name = "generic"

    # "type" or "event_type", depending on the collector
    event_type_field: str = "type"

    # Add url / timestamp / user_agent to the envelope
    include_envelope_context: bool = False

    def serialize(self, batch: BatchContext) -> dict[str, Any] | None:
        if not batch.events:
            return None

        envelope: dict[str, Any] = {}
        if self.include_envelope_context:
            envelope["timestamp"] = batch.sent_at
            if batch.page is not None:
                envelope["url"] = batch.page.url
                envelope["user_agent"] = batch.page.user_agent

        payload = GenericPayload(
            session_id=batch.session_id,
            email=batch.identity,
            events=[e.to_dict(self.event_type_field) for e in batch.events],
            **envelope,
        )
        # Unset envelope fields stay out of the body
        return payload.model_dump(exclude_unset=True)


@dataclass
class MouseMovementSerializer(PayloadSerializer):
    """
    Legacy collector that only stores pointer movement:
    {session_id, email, movements: [{x, y, time}], event_type: "batch_mouse_movements"}

    Other event kinds are dropped; a batch without movement sends nothing.
    """
    name = "mouse_movements"

    def serialize(self, batch: BatchContext) -> dict[str, Any] | None:
        movements = [
            Movement(x=e.get("x", 0), y=e.get("y", 0), time=e.occurred_at)
            for e in batch.events
            if e.kind == EventKind.MOUSEMOVE.value
        ]
        if not movements:
            return None

        return MouseMovementPayload(
            session_id=batch.session_id,
            email=batch.identity,
            movements=movements,
        ).model_dump()


SERIALIZERS: dict[str, type[PayloadSerializer]] = {
    GenericSerializer.name: GenericSerializer,
    MouseMovementSerializer.name: MouseMovementSerializer,
}


def create_serializer(name: str, **options: Any) -> PayloadSerializer:
    """Build a serializer by its configured name."""
    cls = SERIALIZERS.get(name)
    if cls is None:
        raise ValueError(f"Unknown payload format {name!r}; expected one of {sorted(SERIALIZERS)}")
    return cls(**options)
