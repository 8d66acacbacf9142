"""Local key-value storage backends."""

from .base import KeyValueStore
from .file import JsonFileStore
from .memory import InMemoryStore

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
]
