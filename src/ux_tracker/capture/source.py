"""UI event sources the capture bindings subscribe to."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from .inputs import PageInfo


logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]

# Event types the bindings understand
CLICK = "click"
MOUSEMOVE = "mousemove"
SCROLL = "scroll"
FOCUSOUT = "focusout"
SUBMIT = "submit"
VISIBILITYCHANGE = "visibilitychange"

EVENT_TYPES = (CLICK, MOUSEMOVE, SCROLL, FOCUSOUT, SUBMIT, VISIBILITYCHANGE)


class Subscription(Protocol):
    def cancel(self) -> None:
        ...


class UIEventSource(Protocol):
    """
    Capability handed to the capture bindings by the host.

    The host translates whatever its UI toolkit produces into the inputs in
    `ux_tracker.capture.inputs` and calls the subscribed handlers.
    """

    @property
    def page(self) -> PageInfo:
        ...

    def subscribe(self, event_type: str, handler: Handler) -> Subscription:
        ...


@dataclass(eq=False)
class _Registration:
    source: SyntheticEventSource
    event_type: str
    handler: Handler
    active: bool = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self.source._remove(self)


@dataclass
class SyntheticEventSource:
    """
    In-process event source driven by explicit dispatch() calls.

    Used by tests and the replay tool, and as the adapter point for hosts
    that push their own UI events.
    """
    page: PageInfo = field(default_factory=PageInfo)

    _handlers: dict[str, list[_Registration]] = field(default_factory=dict, init=False)

    def subscribe(self, event_type: str, handler: Handler) -> _Registration:
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown UI event type {event_type!r}")
        registration = _Registration(self, event_type, handler)
        self._handlers.setdefault(event_type, []).append(registration)
        return registration

    def _remove(self, registration: _Registration) -> None:
        handlers = self._handlers.get(registration.event_type, [])
        if registration in handlers:
            handlers.remove(registration)

    def dispatch(self, event_type: str, event: Any) -> int:
        """Deliver event to every handler for event_type. Returns the handler count."""
        handlers = list(self._handlers.get(event_type, []))
        for registration in handlers:
            try:
                registration.handler(event)
            except Exception as e:
                # A broken handler must not take the host down
                logger.error(f"UI handler for {event_type} failed: {e}")
        return len(handlers)

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(v) for v in self._handlers.values())
