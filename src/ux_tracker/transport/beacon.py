"""Unload-safe beacon sends."""

from __future__ import annotations

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx


logger = logging.getLogger(__name__)

# Browsers cap beacon bodies at 64 KiB
DEFAULT_MAX_BEACON_BYTES = 64 * 1024


class Beacon(ABC):
    """
    Best-effort transmission that does not depend on the event loop staying
    alive. Used while the page is hidden or being torn down.
    """

    @abstractmethod
    def send(self, url: str, body: bytes) -> bool:
        """
        Hand body over for transmission without blocking the caller.
        Returns False only if the beacon refused to take it; a payload that
        was taken but then lost in transit still returns True.
        """
        ...

    def wait(self, timeout: float | None = None) -> None:
        """Block until payloads already taken have been transmitted."""
        pass

    @property
    def pending(self) -> int:
        return 0


@dataclass
class HttpxBeacon(Beacon):
    """
    Beacon backed by a short, synchronous httpx POST.

    Inside a running event loop the POST runs on a daemon worker thread, so
    send() returns at once and the request outlives the loop. Without a loop
    it runs inline. Bodies above max_bytes are refused so the caller can
    fall back to a regular request.
    """
    timeout: float = 2.0
    max_bytes: int = DEFAULT_MAX_BEACON_BYTES

    # Optional shared client (tests inject one with a mock transport)
    http_client: httpx.Client | None = None

    _threads: set[threading.Thread] = field(default_factory=set, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def send(self, url: str, body: bytes) -> bool:
        if len(body) > self.max_bytes:
            logger.debug(f"Beacon refused {len(body)} byte payload (limit {self.max_bytes})")
            return False

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._post(url, body)
            return True

        thread = threading.Thread(
            target=self._run,
            args=(url, body),
            name="ux-tracker-beacon",
            daemon=True,
        )
        with self._lock:
            self._threads.add(thread)
        thread.start()
        return True

    def _run(self, url: str, body: bytes) -> None:
        try:
            self._post(url, body)
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

    def _post(self, url: str, body: bytes) -> None:
        headers = {"Content-Type": "application/json"}
        try:
            if self.http_client is not None:
                response = self.http_client.post(url, content=body, headers=headers, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Beacon send failed: {e}")
            return

        if not response.is_success:
            logger.warning(f"Collector answered beacon with HTTP {response.status_code}")

    def wait(self, timeout: float | None = None) -> None:
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._threads)
