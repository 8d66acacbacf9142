"""Governance of high-frequency signals."""

from .rate_limiter import Throttle, throttle

__all__ = [
    "Throttle",
    "throttle",
]
