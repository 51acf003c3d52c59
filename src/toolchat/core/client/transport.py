"""HTTP transport for the chat-completion endpoint."""

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from .errors import NetworkError, NoResponseError, TimeoutError, TransportError
from ... import USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://gigachat.devices.sberbank.ru/"
CHAT_COMPLETIONS_PATH = "api/v1/chat/completions"


class Transport(Protocol):
    """Sends one chat-completion request and returns the decoded reply."""

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...


class HttpxTransport:
    """Transport over ``httpx.AsyncClient``. No retries."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        verify_ssl: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            token: Bearer token
            base_url: Endpoint base URL
            timeout: Request timeout in seconds
            verify_ssl: Verify the endpoint's TLS certificate
            client: Pre-built HTTP client (headers are still set per request)
        """
        self.base_url = base_url
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            verify=verify_ssl,
        )

    async def send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a chat-completion payload.

        Args:
            payload: JSON request body

        Returns:
            Decoded JSON reply

        Raises:
            TransportError: On a non-success status, carrying status and body
            TimeoutError: If the request timed out
            NetworkError: If the endpoint could not be reached
            NoResponseError: If the body is not a JSON object
        """
        logger.debug(f"POST {CHAT_COMPLETIONS_PATH}: {payload}")
        try:
            response = await self._client.post(CHAT_COMPLETIONS_PATH, json=payload, headers=self._headers)
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out after {self.timeout}s")
            raise TimeoutError(str(e) or "Request timeout", timeout_seconds=self.timeout, original_error=e)
        except httpx.TransportError as e:
            logger.error(f"Network error: {e}")
            raise NetworkError(str(e) or "Network error", original_error=e)

        if not response.is_success:
            logger.error(f"Chat endpoint returned HTTP {response.status_code}")
            raise TransportError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise NoResponseError("Reply body is not valid JSON", original_error=e)
        if not isinstance(data, dict):
            raise NoResponseError("Reply body is not a JSON object")

        logger.debug(f"Reply: {data}")
        return data

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
