"""API client for the NovaChat HTTP API."""

import logging

import httpx

from .config import CLIConfig

logger = logging.getLogger(__name__)


class ChatAPIError(Exception):
    """Raised when the server cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChatAPIClient:
    """Thin async wrapper over the four chat routes."""

    def __init__(
        self, config: CLIConfig, transport: httpx.AsyncBaseTransport | None = None
    ):
        self.config = config
        self.client = httpx.AsyncClient(
            base_url=config.base_url, timeout=config.timeout, transport=transport
        )

    async def send(self, session_id: str, text: str) -> str:
        """Send *text* to *session_id* and return the reply."""
        data = await self._request(
            "POST", "/chat", json={"sessionId": session_id, "userMessage": text}
        )
        return data.get("reply", "")

    async def messages(self, session_id: str) -> list[dict]:
        data = await self._request("GET", f"/messages/{session_id}")
        return data.get("messages", [])

    async def sessions(self) -> list[dict]:
        data = await self._request("GET", "/sessions")
        return data.get("sessions", [])

    async def clear(self, session_id: str) -> int:
        """Delete the session; returns the number of removed messages."""
        data = await self._request("DELETE", f"/messages/{session_id}")
        return int(data.get("deletedCount", 0))

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        logger.debug("%s %s%s", method, self.config.base_url, path)
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ChatAPIError("Request timed out.") from e
        except httpx.HTTPError as e:
            raise ChatAPIError(f"Connection error: {e}") from e

        logger.debug("Response status: %s", response.status_code)
        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400 or not data.get("success", False):
            message = data.get("error") or f"HTTP {response.status_code}"
            raise ChatAPIError(message, status_code=response.status_code)
        return data

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
