"""Client for the remote consent service."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError


logger = logging.getLogger(__name__)


class RemoteUnavailable(Exception):
    """The remote service could not be reached or answered nonsense."""
    pass


class ConsentCheckRequest(BaseModel):
    """Body of POST /check-consent."""
    email: str | None


class ConsentCheckResponse(BaseModel):
    """Expected answer from the consent service."""
    model_config = ConfigDict(extra="ignore")

    allowed: StrictBool


@dataclass
class ConsentClient:
    """
    Asks the consent service whether an identity has agreed to tracking.

    Usage:
        client = ConsentClient(base_url="http://localhost:5000")
        allowed = await client.check("user@test.com")
    """
    base_url: str
    timeout: float = 5.0

    # Optional shared client (tests inject one with a mock transport)
    http_client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/check-consent"

    async def check(self, identity: str | None) -> bool:
        """
        Return the service's verdict for identity.

        Raises:
            RemoteUnavailable: on connection errors, timeouts, non-2xx
                responses, or a body that is not {"allowed": <bool>}
        """
        body = ConsentCheckRequest(email=identity).model_dump()

        try:
            if self.http_client is not None:
                response = await self.http_client.post(self.url, json=body, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=body)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"Consent service unreachable: {e}") from e

        if not response.is_success:
            raise RemoteUnavailable(f"Consent service returned HTTP {response.status_code}")

        try:
            verdict = ConsentCheckResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise RemoteUnavailable(f"Malformed consent response: {e}") from e

        return verdict.allowed
