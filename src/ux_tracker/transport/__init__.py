"""Delivery of batches to the collector."""

from .base import DeliveryTransport
from .beacon import Beacon, HttpxBeacon
from .console import ConsoleTransport
from .http import HttpTransport
from .serializers import (
    BatchContext,
    GenericSerializer,
    MouseMovementSerializer,
    PayloadSerializer,
    create_serializer,
)

__all__ = [
    "BatchContext",
    "Beacon",
    "ConsoleTransport",
    "DeliveryTransport",
    "GenericSerializer",
    "HttpTransport",
    "HttpxBeacon",
    "MouseMovementSerializer",
    "PayloadSerializer",
    "create_serializer",
]
