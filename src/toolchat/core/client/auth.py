"""Bearer token providers for the chat endpoint."""

import logging
import uuid
from typing import Optional, Protocol

import httpx

from .errors import AuthenticationError
from ... import USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_AUTH_URL = "https://ngw.devices.sberbank.ru:9443/api/v2/oauth"
DEFAULT_SCOPE = "GIGACHAT_API_PERS"


class AuthProvider(Protocol):
    """Obtains a bearer token for the chat endpoint."""

    async def get_token(self, credential: Optional[str]) -> str:
        ...


class StaticTokenProvider:
    """Returns a token issued out of band."""

    def __init__(self, token: str):
        if not token:
            raise AuthenticationError("Access token must not be empty")
        self._token = token

    async def get_token(self, credential: Optional[str] = None) -> str:
        return self._token


class OAuthTokenProvider:
    """Exchanges Basic credentials for a bearer token at the OAuth endpoint."""

    def __init__(
        self,
        auth_url: str = DEFAULT_AUTH_URL,
        scope: str = DEFAULT_SCOPE,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the provider.

        Args:
            auth_url: OAuth token endpoint
            scope: Requested API scope
            timeout: Request timeout in seconds
            verify_ssl: Verify the endpoint's TLS certificate
            client: Pre-built HTTP client; one is created per request otherwise
        """
        self.auth_url = auth_url
        self.scope = scope
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._client = client

    async def get_token(self, credential: Optional[str]) -> str:
        """
        Request a bearer token.

        Args:
            credential: Base64 ``client_id:client_secret`` authorization data

        Returns:
            Access token

        Raises:
            AuthenticationError: If the credential is missing or rejected, or
                the endpoint cannot be reached
        """
        if not credential:
            raise AuthenticationError("No credentials configured for the OAuth endpoint")

        headers = {
            "Authorization": f"Basic {credential}",
            "RqUID": str(uuid.uuid4()),
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

        try:
            if self._client is not None:
                response = await self._client.post(self.auth_url, headers=headers, data={"scope": self.scope})
            else:
                async with httpx.AsyncClient(timeout=self.timeout, verify=self.verify_ssl) as client:
                    response = await client.post(self.auth_url, headers=headers, data={"scope": self.scope})
        except httpx.HTTPError as e:
            logger.error(f"Token request failed: {e}")
            raise AuthenticationError(f"Token request failed: {e}", original_error=e)

        if not response.is_success:
            logger.error(f"Token endpoint returned HTTP {response.status_code}")
            raise AuthenticationError(
                f"Token endpoint returned HTTP {response.status_code}",
                status=response.status_code,
                details={"body": response.text},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AuthenticationError("Token endpoint returned invalid JSON", original_error=e)

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError("Token endpoint response has no access_token")

        logger.debug("Obtained access token")
        return token
