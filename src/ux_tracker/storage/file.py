"""JSON file-backed key-value store."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .base import KeyValueStore


logger = logging.getLogger(__name__)


@dataclass
class JsonFileStore(KeyValueStore):
    """
    Store persisted as a single JSON object on disk.

    Writes go through a temporary file and os.replace, so a crash mid-write
    leaves the previous contents intact. A missing or unreadable file is
    treated as an empty store. A failed write is logged, the temporary file
    is removed and the value is kept in memory for this process.
    """
    path: str
    encoding: str = "utf-8"

    _data: dict[str, str] = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._data = self._load()

    def _load(self) -> dict[str, str]:
        p = Path(self.path)
        if not p.exists():
            return {}
        try:
            with open(p, "r", encoding=self.encoding) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store file {self.path}: expected a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _save(self) -> None:
        p = Path(self.path)
        tmp = p.with_name(p.name + ".tmp")
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding=self.encoding) as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
            os.replace(tmp, p)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write store file {self.path}: {e}")
            tmp.unlink(missing_ok=True)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._save()

    def clear(self) -> None:
        self._data.clear()
        self._save()
