"""Console transport for development and dry runs."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..capture.inputs import PageInfo
from ..clock import Clock
from ..telemetry.events import Event
from .base import DeliveryTransport
from .serializers import BatchContext, GenericSerializer, PayloadSerializer

if TYPE_CHECKING:
    from ..state import PipelineState


@dataclass
class ConsoleTransport(DeliveryTransport):
    """
    Writes each payload to stdout/stderr instead of the network.

    Useful for development and for replaying recordings without a collector.
    """
    state: PipelineState
    clock: Clock
    serializer: PayloadSerializer = field(default_factory=GenericSerializer)

    # Output destination
    stream: str = "stdout"  # stdout | stderr

    # Output format
    format: str = "json"  # json | pretty

    # Prefix for each line
    prefix: str = "[UX-TRACKER] "

    page: PageInfo | None = None

    _batches: int = field(default=0, init=False)

    def send(self, events: list[Event], *, unloading: bool = False) -> None:
        payload = self.serializer.serialize(BatchContext(
            session_id=self.state.session_id,
            identity=self.state.identity,
            events=events,
            sent_at=self.clock.now_ms(),
            page=self.page,
        ))
        if payload is None:
            return

        out = sys.stdout if self.stream == "stdout" else sys.stderr
        indent = 2 if self.format == "pretty" else None
        mode = "beacon" if unloading else "request"
        print(f"{self.prefix}({mode}) {json.dumps(payload, indent=indent, default=str)}", file=out)
        self._batches += 1

    @property
    def stats(self) -> dict:
        return {"batches_written": self._batches}
