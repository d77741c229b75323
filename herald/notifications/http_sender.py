"""HTTP adapter implementing :class:`MessageSender` for a chat relay API."""

from __future__ import annotations

import dataclasses as dc
from urllib.parse import quote

import httpx


class ChatDeliveryError(RuntimeError):
    """Raised when the chat API rejects a message."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, channel_id: str, status_code: int) -> ChatDeliveryError:
        """Return an error for a non-2xx response."""
        return cls(
            f"Chat API HTTP {status_code} for channel {channel_id}",
            status_code=status_code,
        )


@dc.dataclass(frozen=True, slots=True)
class ChatApiConfig:
    """Connection settings for the chat relay API."""

    base_url: str
    timeout_s: float = 10.0
    user_agent: str = "herald-relay"


class HttpMessageSender:
    """POST ``{"text": ...}`` to ``{base_url}/channels/{channel_id}/messages``."""

    def __init__(
        self,
        config: ChatApiConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Use *http_client* when given, otherwise own a new client."""
        self._base_url = config.base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
        )

    async def send_message(self, channel_id: str, text: str) -> None:
        """Send *text* to *channel_id*.

        Raises
        ------
        ChatDeliveryError
            If the API responds with a non-2xx status.
        httpx.HTTPError
            If the request cannot be completed.

        """
        url = f"{self._base_url}/channels/{quote(channel_id, safe='')}/messages"
        response = await self._client.post(url, json={"text": text})
        if response.is_error:
            raise ChatDeliveryError.http_error(channel_id, response.status_code)

    async def aclose(self) -> None:
        """Close the underlying client if this sender created it."""
        if self._owns_client:
            await self._client.aclose()
