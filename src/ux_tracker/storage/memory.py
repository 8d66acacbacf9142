"""In-memory key-value store."""

from __future__ import annotations

from dataclasses import dataclass, field

from .base import KeyValueStore


@dataclass
class InMemoryStore(KeyValueStore):
    """Store that lives as long as the process. Useful for tests and demos."""
    initial: dict[str, str] = field(default_factory=dict)

    _data: dict[str, str] = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._data = dict(self.initial)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
