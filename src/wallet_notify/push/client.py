"""Expo push HTTP client.

Provides an async HTTP client for the Expo push API:
- POST /--/api/v2/push/send — deliver up to 100 messages, one ticket each
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from wallet_notify.errors.push_errors import PushTransportError
from wallet_notify.push.models import PushTicket

if TYPE_CHECKING:
    from wallet_notify.config.settings import PushConfig
    from wallet_notify.push.models import PushMessage


class ExpoPushClient:
    """Async HTTP client for the Expo push service.

    Usage::

        client = ExpoPushClient(config)
        await client.connect()
        try:
            tickets = await client.send(messages)
        finally:
            await client.close()
    """

    def __init__(self, config: PushConfig) -> None:
        """Initialize the push client.

        Args:
            config: Push configuration (url, access token, timeout).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        headers: dict[str, str] = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self._config.access_token:
            headers["Authorization"] = f"Bearer {self._config.access_token}"

        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=self._config.timeout_seconds,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    async def send(self, messages: list[PushMessage]) -> list[PushTicket]:
        """Deliver one batch of messages.

        Args:
            messages: At most one provider batch of messages.

        Returns:
            One ticket per message, in input order.

        Raises:
            PushTransportError: If the request as a whole failed.
        """
        client = self._ensure_connected()
        if not messages:
            return []

        try:
            response = await client.post(
                self._config.url,
                json=[m.to_dict() for m in messages],
            )
        except httpx.TimeoutException as exc:
            raise PushTransportError(f"push request timed out: {exc}", status_code=504) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise PushTransportError(f"push request failed: {exc}") from exc

        if response.status_code >= 300:
            raise PushTransportError(
                f"push service returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise PushTransportError("push service returned a non-JSON body") from exc

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            errors = body.get("errors") if isinstance(body, dict) else None
            raise PushTransportError(f"push service rejected the request: {errors or body}")
        if len(data) != len(messages):
            msg = f"push service returned {len(data)} tickets for {len(messages)} messages"
            raise PushTransportError(msg)

        return [PushTicket.from_dict(t if isinstance(t, dict) else {}) for t in data]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Return the HTTP client, raising if not connected."""
        if self._client is None:
            msg = "push client not connected. Call connect() first."
            raise PushTransportError(msg, status_code=500)
        return self._client
