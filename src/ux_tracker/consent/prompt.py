"""Consent prompt surfaces."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable


logger = logging.getLogger(__name__)

Response = Callable[[], None]


class PromptAlreadyOpen(Exception):
    """Raised when a prompt is requested while one is already showing."""
    pass


class ConsentPrompt(ABC):
    """
    A binary accept/decline surface shown to the user.

    Implementations call on_accept or on_decline once the user answers.
    Rendering is entirely up to the host.
    """
    element_id: str = "analytics-consent-banner"

    @abstractmethod
    def show(self, on_accept: Response, on_decline: Response) -> None:
        """
        Display the prompt.

        Raises:
            PromptAlreadyOpen: if the prompt is already visible
        """
        ...

    @abstractmethod
    def dismiss(self) -> None:
        ...

    @property
    @abstractmethod
    def is_visible(self) -> bool:
        ...


@dataclass
class HeadlessPrompt(ConsentPrompt):
    """
    Prompt without a rendering of its own.

    The host shows whatever it likes when `is_visible` turns true and reports
    the user's answer through accept() / decline().
    """
    element_id: str = "analytics-consent-banner"

    _on_accept: Response | None = field(default=None, init=False, repr=False)
    _on_decline: Response | None = field(default=None, init=False, repr=False)
    _times_shown: int = field(default=0, init=False)

    def show(self, on_accept: Response, on_decline: Response) -> None:
        if self.is_visible:
            raise PromptAlreadyOpen(f"Prompt #{self.element_id} is already open")
        self._on_accept = on_accept
        self._on_decline = on_decline
        self._times_shown += 1
        logger.info("Consent prompt shown")

    def dismiss(self) -> None:
        self._on_accept = None
        self._on_decline = None

    @property
    def is_visible(self) -> bool:
        return self._on_accept is not None

    @property
    def times_shown(self) -> int:
        return self._times_shown

    def accept(self) -> None:
        """User pressed Accept."""
        on_accept, _ = self._require_open()
        on_accept()

    def decline(self) -> None:
        """User pressed Decline."""
        _, on_decline = self._require_open()
        on_decline()

    def _require_open(self) -> tuple[Response, Response]:
        if self._on_accept is None or self._on_decline is None:
            raise RuntimeError("Consent prompt is not open")
        return self._on_accept, self._on_decline
