"""Base delivery transport interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..capture.inputs import PageInfo
from ..telemetry.events import Event


class DeliveryTransport(ABC):
    """
    Ships batches of events to the collector.

    send() is fire-and-forget: it must not block the caller on the network
    and must not raise for delivery failures, which are logged and dropped.
    """

    # Page the batches were captured on, set when tracking starts
    page: PageInfo | None = None

    @abstractmethod
    def send(self, events: list[Event], *, unloading: bool = False) -> None:
        """Deliver one batch. unloading is True when the page is going away."""
        ...

    async def drain(self) -> None:
        """Wait for sends still in flight."""
        pass

    async def aclose(self) -> None:
        """Wait for in-flight sends and release resources."""
        await self.drain()

    @property
    def stats(self) -> dict:
        return {}
