"""Base key-value store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """
    Durable string storage for a single origin.

    The tracker keeps two keys here: the consent decision and the session
    identifier. Values survive restarts until the store is cleared.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove everything (the external "clear site data" act)."""
        ...
