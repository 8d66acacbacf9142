"""Tests for capture bindings."""

import pytest

from ux_tracker.capture.bindings import CaptureBindings
from ux_tracker.capture.inputs import (
    FocusInput,
    PointerInput,
    ScrollInput,
    SubmitInput,
    TargetInfo,
    VisibilityInput,
)
from ux_tracker.capture.source import SyntheticEventSource
from ux_tracker.config import CaptureConfig
from ux_tracker.telemetry.milestones import MilestoneTracker


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, kind, **attributes):
        kind = getattr(kind, "value", kind)
        self.calls.append((kind, attributes))

    def kinds(self):
        return [k for k, _ in self.calls]


@pytest.fixture
def recorded():
    return Recorder()


@pytest.fixture
def visibility():
    return []


@pytest.fixture
def source(page):
    return SyntheticEventSource(page=page)


def attach(source, clock, recorded, visibility, **config):
    bindings = CaptureBindings(
        config=CaptureConfig(**config),
        clock=clock,
        milestones=MilestoneTracker(),
        record=recorded,
        on_visibility=visibility.append,
    )
    bindings.attach(source)
    return bindings


def field(form_id, name, has_value=True):
    return TargetInfo(tag="INPUT", form_id=form_id, name=name, has_value=has_value)


class TestClicks:
    def test_click(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility)
        target = TargetInfo(tag="BUTTON", id="buy", class_name="btn primary")

        source.dispatch("click", PointerInput(x=100, y=200, target=target))

        assert recorded.calls == [("click", {
            "x": 100,
            "y": 200,
            "target_tag": "BUTTON",
            "target_id": "buy",
            "target_class": "btn primary",
        })]

    def test_missing_target_details_become_none(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility)
        source.dispatch("click", PointerInput(x=1, y=1, target=TargetInfo(tag="DIV")))
        _, attrs = recorded.calls[0]
        assert attrs["target_id"] is None
        assert attrs["target_class"] is None

    def test_clicks_on_consent_prompt_ignored(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility)
        inside = TargetInfo(tag="BUTTON", id="btn-accept", ancestor_ids=("analytics-consent-banner",))
        banner = TargetInfo(tag="DIV", id="analytics-consent-banner")

        source.dispatch("click", PointerInput(x=1, y=1, target=inside))
        source.dispatch("click", PointerInput(x=1, y=1, target=banner))

        assert recorded.calls == []

    def test_click_kind_configurable(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility, click_kind="interaction_click")
        source.dispatch("click", PointerInput(x=1, y=1))
        assert recorded.kinds() == ["interaction_click"]


class TestPointerAndScroll:
    def test_mousemove_throttled(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility, mousemove_throttle_ms=100)

        for t, x in ((0, 1), (30, 2), (60, 3), (110, 4)):
            clock.advance_to(clock.start_ms + t)
            source.dispatch("mousemove", PointerInput(x=x, y=0))

        assert recorded.calls == [("mousemove", {"x": 1, "y": 0}), ("mousemove", {"x": 4, "y": 0})]

    def test_scroll_percent(self):
        assert ScrollInput(scroll_y=0, viewport_height=500, document_height=2000).percent == 25
        assert ScrollInput(scroll_y=1500, viewport_height=500, document_height=2000).percent == 100
        assert ScrollInput(scroll_y=0, viewport_height=500, document_height=0).percent == 100

    def test_scroll_milestones(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility, scroll_throttle_ms=100)

        for percent in (10, 26, 51, 89, 95):
            clock.advance(200)
            source.dispatch("scroll", ScrollInput(scroll_y=percent * 10, viewport_height=0, document_height=1000))

        assert recorded.calls == [
            ("scroll_depth", {"depth_percentage": 25}),
            ("scroll_depth", {"depth_percentage": 50}),
            ("scroll_depth", {"depth_percentage": 75}),
            ("scroll_depth", {"depth_percentage": 90}),
        ]

    def test_scroll_throttled(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility, scroll_throttle_ms=100)

        source.dispatch("scroll", ScrollInput(scroll_y=0, viewport_height=100, document_height=1000))
        # Within the interval: dropped even though it crosses a milestone
        clock.advance(50)
        source.dispatch("scroll", ScrollInput(scroll_y=900, viewport_height=100, document_height=1000))

        assert recorded.calls == []

        clock.advance(50)
        source.dispatch("scroll", ScrollInput(scroll_y=900, viewport_height=100, document_height=1000))
        assert len(recorded.calls) == 4


class TestForms:
    def test_abandoned_form_reported_on_hide(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility)

        source.dispatch("focusout", FocusInput(target=field("signup", "email")))
        source.dispatch("focusout", FocusInput(target=field("signup", "phone")))
        source.dispatch("visibilitychange", VisibilityInput(state="hidden"))

        assert recorded.calls == [("form_abandonment", {"form_id": "signup", "last_field": "phone"})]
        assert visibility == [True]

    def test_reported_once(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility)
        source.dispatch("focusout", FocusInput(target=field("signup", "email")))

        source.dispatch("visibilitychange", VisibilityInput(state="hidden"))
        source.dispatch("visibilitychange", VisibilityInput(state="visible"))
        source.dispatch("visibilitychange", VisibilityInput(state="hidden"))

        assert recorded.kinds() == ["form_abandonment"]
        assert visibility == [True, False, True]

    def test_submitted_form_not_reported(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility)

        source.dispatch("focusout", FocusInput(target=field("checkout", "card")))
        source.dispatch("submit", SubmitInput(form_id="checkout"))
        source.dispatch("focusout", FocusInput(target=field("checkout", "card")))
        source.dispatch("visibilitychange", VisibilityInput(state="hidden"))

        assert recorded.calls == []

    def test_empty_fields_ignored(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility)

        source.dispatch("focusout", FocusInput(target=field("search", "q", has_value=False)))
        source.dispatch("focusout", FocusInput(target=TargetInfo(tag="INPUT", has_value=True)))
        source.dispatch("visibilitychange", VisibilityInput(state="hidden"))

        assert recorded.calls == []


class TestAttachDetach:
    def test_attach_twice_is_noop(self, source, clock, recorded, visibility):
        bindings = attach(source, clock, recorded, visibility)
        count = source.listener_count()
        bindings.attach(source)
        assert source.listener_count() == count

    def test_detach(self, source, clock, recorded, visibility):
        bindings = attach(source, clock, recorded, visibility)
        bindings.detach()

        assert source.listener_count() == 0
        assert not bindings.attached
        source.dispatch("click", PointerInput(x=1, y=1))
        assert recorded.calls == []

    def test_disabled_signals_not_subscribed(self, source, clock, recorded, visibility):
        attach(source, clock, recorded, visibility, track_clicks=False, track_mousemove=False)

        assert source.listener_count("click") == 0
        assert source.listener_count("mousemove") == 0
        assert source.listener_count("visibilitychange") == 1

    def test_handler_errors_contained(self, source):
        def broken(event):
            raise RuntimeError("boom")

        source.subscribe("click", broken)
        assert source.dispatch("click", PointerInput(x=1, y=1)) == 1

    def test_unknown_event_type(self, source):
        with pytest.raises(ValueError):
            source.subscribe("keypress", lambda e: None)
