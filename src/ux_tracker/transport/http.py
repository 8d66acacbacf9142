"""HTTP delivery to the ingestion endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from ..capture.inputs import PageInfo
from ..clock import Clock
from ..telemetry.events import Event
from .base import DeliveryTransport
from .beacon import Beacon
from .serializers import BatchContext, GenericSerializer, PayloadSerializer

if TYPE_CHECKING:
    from ..state import PipelineState


logger = logging.getLogger(__name__)

_HEADERS = {"Content-Type": "application/json"}


@dataclass
class HttpTransport(DeliveryTransport):
    """
    POSTs serialized batches to the collector.

    Mode selection per batch:
    - page unloading and a beacon is available -> beacon
    - otherwise -> keep-alive request scheduled on the running loop

    Keep-alive requests are tracked until they finish; aclose() waits for
    them, along with beacon posts still on their worker thread, so a send
    started just before shutdown still completes. When no loop is running
    the request is made synchronously.

    Responses are never read beyond the status code. Failures are logged
    and the batch is dropped.
    """
    endpoint: str
    state: PipelineState
    clock: Clock
    serializer: PayloadSerializer = field(default_factory=GenericSerializer)
    beacon: Beacon | None = None
    timeout: float = 10.0

    # Optional shared client (tests inject one with a mock transport)
    http_client: httpx.AsyncClient | None = None

    # Page the batches were captured on (set when tracking starts)
    page: PageInfo | None = None

    # Internal state
    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)
    _in_flight: set[asyncio.Task] = field(default_factory=set, init=False, repr=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "requests_sent": 0,
            "beacons_sent": 0,
            "failures": 0,
            "skipped": 0,
        }

    def send(self, events: list[Event], *, unloading: bool = False) -> None:
        body = self.encode(events)
        if body is None:
            self._stats["skipped"] += 1
            return

        if unloading and self.beacon is not None:
            if self.beacon.send(self.endpoint, body):
                self._stats["beacons_sent"] += 1
                return
            logger.warning("Beacon refused payload, falling back to keep-alive request")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._post_blocking(body)
            return

        task = loop.create_task(self._post(body))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    def encode(self, events: list[Event]) -> bytes | None:
        """Serialize a batch to the request body, or None if nothing to send."""
        payload = self.serializer.serialize(BatchContext(
            session_id=self.state.session_id,
            identity=self.state.identity,
            events=events,
            sent_at=self.clock.now_ms(),
            page=self.page,
        ))
        if payload is None:
            return None
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")

    async def _post(self, body: bytes) -> None:
        if self.http_client is not None:
            client = self.http_client
        else:
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=self.timeout)
            client = self._client

        try:
            response = await client.post(self.endpoint, content=body, headers=_HEADERS)
        except httpx.HTTPError as e:
            logger.error(f"Send failed: {e}")
            self._stats["failures"] += 1
            return

        self._record(response)

    def _post_blocking(self, body: bytes) -> None:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.endpoint, content=body, headers=_HEADERS)
        except httpx.HTTPError as e:
            logger.error(f"Send failed: {e}")
            self._stats["failures"] += 1
            return

        self._record(response)

    def _record(self, response: httpx.Response) -> None:
        if response.is_success:
            self._stats["requests_sent"] += 1
        else:
            logger.warning(f"Collector returned HTTP {response.status_code}, batch dropped")
            self._stats["failures"] += 1

    async def drain(self) -> None:
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
        if self.beacon is not None and self.beacon.pending:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.beacon.wait, self.timeout)

    async def aclose(self) -> None:
        await self.drain()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def stats(self) -> dict:
        return {**self._stats, "in_flight": self.in_flight}
