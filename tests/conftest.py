"""Shared test fixtures for the tracker tests.

Time is driven by a ManualClock and the network by httpx.MockTransport, so
every test is deterministic and offline.
"""

from __future__ import annotations

import json

import httpx
import pytest

from ux_tracker.capture.inputs import PageInfo
from ux_tracker.clock import ManualClock
from ux_tracker.state import PipelineState
from ux_tracker.storage.memory import InMemoryStore
from ux_tracker.telemetry.events import Event
from ux_tracker.transport.base import DeliveryTransport
from ux_tracker.transport.beacon import Beacon


START_MS = 1_700_000_000_000
IDENTITY = "user@test.com"


class RecordingTransport(DeliveryTransport):
    """Transport that remembers every batch it was given."""

    def __init__(self):
        self.batches: list[tuple[list[Event], bool]] = []

    def send(self, events, *, unloading=False):
        self.batches.append((list(events), unloading))

    @property
    def events(self) -> list[Event]:
        return [e for batch, _ in self.batches for e in batch]


class FakeBeacon(Beacon):
    """Beacon that records payloads and accepts or refuses them."""

    def __init__(self, accept: bool = True):
        self.accept = accept
        self.sent: list[tuple[str, dict]] = []

    def send(self, url, body):
        if not self.accept:
            return False
        self.sent.append((url, json.loads(body)))
        return True


class FakeService:
    """
    Stand-in for the consent service and the collector.

    Each request is recorded; the reply comes from `reply`, which may be a
    status/body pair or an exception to raise.
    """

    def __init__(self, status: int = 200, body=None, error: Exception | None = None):
        self.status = status
        self.body = body if body is not None else {}
        self.error = error
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status, content=self.body)
        return httpx.Response(self.status, json=self.body)

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start_ms=START_MS)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def state() -> PipelineState:
    s = PipelineState()
    s.init(IDENTITY)
    return s


@pytest.fixture
def page() -> PageInfo:
    return PageInfo(
        url="https://shop.example/products",
        width=1280,
        height=800,
        user_agent="pytest-agent/1.0",
    )


@pytest.fixture
def recorder() -> RecordingTransport:
    return RecordingTransport()


def make_event(kind: str = "click", ts: int = START_MS, **attrs) -> Event:
    return Event.create(kind, occurred_at=ts, context="https://shop.example/", **attrs)
