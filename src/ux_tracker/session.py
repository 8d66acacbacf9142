"""Session identifier management."""

from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass, field

from .clock import Clock
from .storage.base import KeyValueStore


logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def mint_session_id(now_ms: int, rng: random.Random | None = None) -> str:
    """
    New session id: "sess_" + 9 random base-36 chars + the ms timestamp.

    Unique enough for per-browser sessions; not a security token.
    """
    rng = rng or random.SystemRandom()
    suffix = "".join(rng.choice(_BASE36) for _ in range(9))
    return f"sess_{suffix}{now_ms}"


@dataclass
class SessionIdentityManager:
    """Obtains the persisted session id, minting one on first use."""
    store: KeyValueStore
    clock: Clock
    key: str = "analytics_session_id"
    rng: random.Random | None = field(default=None, repr=False)

    def get_or_create_session_id(self) -> str:
        existing = self.store.get(self.key)
        if existing:
            return existing

        session_id = mint_session_id(self.clock.now_ms(), self.rng)
        self.store.set(self.key, session_id)
        logger.debug(f"Minted session id {session_id}")
        return session_id
