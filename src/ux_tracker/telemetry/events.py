"""Telemetry event types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union


Primitive = Union[str, int, float, bool, None]

_PRIMITIVE_TYPES = (str, int, float, bool, type(None))


class EventKind(str, Enum):
    """Known event kinds. Any other string is also a valid kind."""
    PAGE_VIEW = "page_view"
    CLICK = "click"
    INTERACTION_CLICK = "interaction_click"
    MOUSEMOVE = "mousemove"
    SCROLL_DEPTH = "scroll_depth"
    FORM_ABANDONMENT = "form_abandonment"


@dataclass(frozen=True, slots=True)
class Event:
    """
    A single observed UI occurrence.

    Immutable once created: attributes are exposed through a read-only
    mapping and may only hold primitive values.
    """
    # What happened
    kind: str

    # When (ms since epoch, assigned at capture)
    occurred_at: int

    # Page URL at capture time
    context: str | None = None

    # Kind-specific values
    attributes: Mapping[str, Primitive] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def create(
        cls,
        kind: str | EventKind,
        occurred_at: int,
        context: str | None = None,
        **attributes: Any,
    ) -> Event:
        """Factory that validates and freezes the attributes."""
        if isinstance(kind, EventKind):
            kind = kind.value
        if not kind:
            raise ValueError("Event kind must be a non-empty string")

        for key, value in attributes.items():
            if not isinstance(value, _PRIMITIVE_TYPES):
                raise TypeError(
                    f"Attribute {key!r} of {kind} event must be a primitive, "
                    f"got {type(value).__name__}"
                )

        return cls(
            kind=kind,
            occurred_at=int(occurred_at),
            context=context,
            attributes=MappingProxyType(dict(attributes)),
        )

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def to_dict(self, type_field: str = "type") -> dict[str, Any]:
        """Flat wire form: type, timestamp, page, then the attributes."""
        d: dict[str, Any] = {
            type_field: self.kind,
            "timestamp": self.occurred_at,
        }
        if self.context is not None:
            d["page"] = self.context
        for key, value in self.attributes.items():
            # Attributes never shadow the envelope keys
            d.setdefault(key, value)
        return d
