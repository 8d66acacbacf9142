"""Capture of raw UI activity."""

from .bindings import CaptureBindings
from .inputs import (
    FocusInput,
    PageInfo,
    PointerInput,
    ScrollInput,
    SubmitInput,
    TargetInfo,
    VisibilityInput,
)
from .source import SyntheticEventSource, UIEventSource

__all__ = [
    "CaptureBindings",
    "FocusInput",
    "PageInfo",
    "PointerInput",
    "ScrollInput",
    "SubmitInput",
    "SyntheticEventSource",
    "TargetInfo",
    "UIEventSource",
    "VisibilityInput",
]
