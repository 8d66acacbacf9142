"""Consent gate: decides whether capture may run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..state import ConsentState, PipelineState
from ..storage.base import KeyValueStore
from .client import ConsentClient, RemoteUnavailable
from .prompt import ConsentPrompt, PromptAlreadyOpen


logger = logging.getLogger(__name__)


class Decision(str, Enum):
    """Outcome of a consent decision."""
    PROCEED = "proceed"   # capture may start
    PROMPT = "prompt"     # waiting for the user to answer the prompt
    STOP = "stop"         # no capture this page lifetime


@dataclass
class ConsentGate:
    """
    Combines the remote consent service (source of truth) with the locally
    cached decision (fallback).

    Order of precedence in decide():
    1. A decision already made this page lifetime
    2. A prompt already on screen (re-entry is a no-op)
    3. Remote verdict: allowed -> proceed; otherwise a cached decline stops,
       anything else prompts
    4. Remote failure: cached accept proceeds, anything else prompts

    Without a consent client the gate runs on the cache alone.
    """
    state: PipelineState
    store: KeyValueStore
    prompt: ConsentPrompt
    client: ConsentClient | None = None

    # Persisted key for the user's answer
    cache_key: str = "analytics_consent"

    # Called once consent is granted through the prompt
    on_accept: Callable[[], None] | None = None

    async def decide(self) -> Decision:
        settled = self._settled()
        if settled is not None:
            return settled

        if self.prompt.is_visible:
            logger.debug("Consent prompt already open, ignoring repeated decision request")
            return Decision.PROMPT

        if self.client is None:
            return self._decide_locally()

        try:
            allowed = await self.client.check(self.state.identity)
        except RemoteUnavailable as e:
            logger.warning(f"Consent service unavailable, falling back to local decision: {e}")
            return self._decide_offline()

        # The user may have answered a prompt while we were waiting
        settled = self._settled()
        if settled is not None:
            return settled

        if allowed:
            logger.info(f"Consent verified by server for {self.state.identity}")
            self.state.set_consent(ConsentState.ACCEPTED)
            return Decision.PROCEED

        if self.cached == ConsentState.DECLINED.value:
            logger.info("User explicitly declined tracking earlier")
            self.state.set_consent(ConsentState.DECLINED)
            return Decision.STOP

        return self._show_prompt()

    def _settled(self) -> Decision | None:
        if self.state.consent is ConsentState.ACCEPTED:
            return Decision.PROCEED
        if self.state.consent is ConsentState.DECLINED:
            return Decision.STOP
        return None

    def _decide_offline(self) -> Decision:
        settled = self._settled()
        if settled is not None:
            return settled
        if self.cached == ConsentState.ACCEPTED.value:
            self.state.set_consent(ConsentState.ACCEPTED)
            return Decision.PROCEED
        return self._show_prompt()

    def _decide_locally(self) -> Decision:
        cached = self.cached
        if cached == ConsentState.ACCEPTED.value:
            self.state.set_consent(ConsentState.ACCEPTED)
            return Decision.PROCEED
        if cached == ConsentState.DECLINED.value:
            logger.info("User declined tracking")
            self.state.set_consent(ConsentState.DECLINED)
            return Decision.STOP
        return self._show_prompt()

    def _show_prompt(self) -> Decision:
        try:
            self.prompt.show(self.accept, self.decline)
        except PromptAlreadyOpen:
            logger.debug("Consent prompt already open, not showing another")
        return Decision.PROMPT

    def accept(self) -> None:
        """The user accepted tracking."""
        if self.state.consent is ConsentState.DECLINED:
            logger.warning("Ignoring accept after decline in the same page lifetime")
            return
        self.store.set(self.cache_key, ConsentState.ACCEPTED.value)
        self.prompt.dismiss()
        if self.state.consent is ConsentState.ACCEPTED:
            return
        self.state.set_consent(ConsentState.ACCEPTED)
        logger.info("User accepted tracking")
        if self.on_accept is not None:
            self.on_accept()

    def decline(self) -> None:
        """The user declined tracking. Final for this page lifetime."""
        if self.state.consent is ConsentState.ACCEPTED:
            logger.warning("Ignoring decline after accept in the same page lifetime")
            return
        self.store.set(self.cache_key, ConsentState.DECLINED.value)
        self.prompt.dismiss()
        if self.state.consent is ConsentState.UNKNOWN:
            self.state.set_consent(ConsentState.DECLINED)
        logger.info("User declined tracking")

    @property
    def cached(self) -> str | None:
        """Locally cached decision ("accepted", "declined" or None)."""
        return self.store.get(self.cache_key)
