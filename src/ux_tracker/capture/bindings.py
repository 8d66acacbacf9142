"""Capture bindings: turn raw UI inputs into queued events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from ..clock import Clock
from ..config import CaptureConfig
from ..governance.rate_limiter import Throttle, throttle
from ..telemetry.events import EventKind
from ..telemetry.milestones import MilestoneTracker
from . import source as ui
from .inputs import FocusInput, PointerInput, ScrollInput, SubmitInput, VisibilityInput


logger = logging.getLogger(__name__)


@dataclass
class CaptureBindings:
    """
    Subscribes to a UI event source and records normalized events.

    Pointer movement and scroll go through a leading-edge throttle; scroll
    positions become once-only depth milestones. Forms that were filled in
    but never submitted are reported when the page is hidden.
    """
    config: CaptureConfig
    clock: Clock
    milestones: MilestoneTracker

    # record(kind, **attributes): builds and enqueues an event
    record: Callable[..., Any]

    # Called with True when the page is hidden, False when visible again
    on_visibility: Callable[[bool], None] | None = None

    # Internal state
    _subscriptions: list = field(default_factory=list, init=False)
    _move: Throttle | None = field(default=None, init=False)
    _scroll: Throttle | None = field(default=None, init=False)
    _touched_forms: dict[str, str | None] = field(default_factory=dict, init=False)
    _submitted_forms: set[str] = field(default_factory=set, init=False)

    def attach(self, source: ui.UIEventSource) -> None:
        """Start listening. Attaching again while attached is a no-op."""
        if self._subscriptions:
            return

        cfg = self.config
        if cfg.track_clicks:
            self._listen(source, ui.CLICK, self._on_click)
        if cfg.track_mousemove:
            self._move = throttle(self._on_mousemove, cfg.mousemove_throttle_ms, self.clock)
            self._listen(source, ui.MOUSEMOVE, self._move)
        if cfg.track_scroll:
            self._scroll = throttle(self._on_scroll, cfg.scroll_throttle_ms, self.clock)
            self._listen(source, ui.SCROLL, self._scroll)
        if cfg.track_forms:
            self._listen(source, ui.FOCUSOUT, self._on_focusout)
            self._listen(source, ui.SUBMIT, self._on_submit)
        self._listen(source, ui.VISIBILITYCHANGE, self._on_visibility)

        logger.debug(f"Capture attached ({len(self._subscriptions)} listeners)")

    def detach(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        self._touched_forms.clear()
        self._submitted_forms.clear()

    def _listen(self, source: ui.UIEventSource, event_type: str, handler: Callable[[Any], Any]) -> None:
        self._subscriptions.append(source.subscribe(event_type, handler))

    @property
    def attached(self) -> bool:
        return bool(self._subscriptions)

    def _on_click(self, e: PointerInput) -> None:
        target = e.target
        # Clicks on the consent prompt are not user activity on the page
        if target.closest(self.config.prompt_element_id):
            return
        self.record(
            self.config.click_kind,
            x=e.x,
            y=e.y,
            target_tag=target.tag or None,
            target_id=target.id or None,
            target_class=target.class_name or None,
        )

    def _on_mousemove(self, e: PointerInput) -> None:
        self.record(EventKind.MOUSEMOVE, x=e.x, y=e.y)

    def _on_scroll(self, e: ScrollInput) -> None:
        for depth in self.milestones.observe(e.percent):
            self.record(EventKind.SCROLL_DEPTH, depth_percentage=depth)

    def _on_focusout(self, e: FocusInput) -> None:
        target = e.target
        if not target.form_id or not target.has_value:
            return
        if target.form_id in self._submitted_forms:
            return
        self._touched_forms[target.form_id] = target.name or target.id

    def _on_submit(self, e: SubmitInput) -> None:
        if e.form_id:
            self._submitted_forms.add(e.form_id)
            self._touched_forms.pop(e.form_id, None)

    def _on_visibility(self, e: VisibilityInput) -> None:
        if e.hidden:
            self._report_abandoned_forms()
        if self.on_visibility is not None:
            self.on_visibility(e.hidden)

    def _report_abandoned_forms(self) -> None:
        for form_id, last_field in self._touched_forms.items():
            self.record(EventKind.FORM_ABANDONMENT, form_id=form_id, last_field=last_field)
        self._touched_forms.clear()

    @property
    def stats(self) -> dict:
        return {
            "listeners": len(self._subscriptions),
            "mousemove": self._move.stats if self._move else None,
            "scroll": self._scroll.stats if self._scroll else None,
            "pending_forms": len(self._touched_forms),
        }
