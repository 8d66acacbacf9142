"""Raw UI inputs delivered by the host environment."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PageInfo:
    """The page being observed."""
    url: str | None = None
    width: int = 0
    height: int = 0
    user_agent: str | None = None


@dataclass(frozen=True)
class TargetInfo:
    """The element an input was aimed at."""
    tag: str = ""
    id: str | None = None
    class_name: str | None = None

    # Enclosing form and the field's name, for form inputs
    form_id: str | None = None
    name: str | None = None
    has_value: bool = False

    # Ids of enclosing elements, innermost first
    ancestor_ids: tuple[str, ...] = ()

    def closest(self, element_id: str) -> bool:
        """True if this element or one of its ancestors has element_id."""
        return self.id == element_id or element_id in self.ancestor_ids


@dataclass(frozen=True)
class PointerInput:
    """Click or pointer movement, in viewport coordinates."""
    x: float
    y: float
    target: TargetInfo = field(default_factory=TargetInfo)


@dataclass(frozen=True)
class ScrollInput:
    scroll_y: float
    viewport_height: float
    document_height: float

    @property
    def percent(self) -> int:
        """How far down the document the bottom of the viewport is."""
        if self.document_height <= 0:
            return 100
        return round((self.scroll_y + self.viewport_height) / self.document_height * 100)


@dataclass(frozen=True)
class FocusInput:
    """A form field lost focus."""
    target: TargetInfo


@dataclass(frozen=True)
class SubmitInput:
    form_id: str | None


@dataclass(frozen=True)
class VisibilityInput:
    state: str  # visible | hidden

    @property
    def hidden(self) -> bool:
        return self.state == "hidden"
