# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access token provider for the Directory API.

Exchanges a long-lived OAuth2 refresh token for short-lived access tokens
and caches the current token until shortly before it expires. No lock is
held across the refresh request: two requests that both find the token
expired will both refresh, and the later response simply replaces the
cached token.

Example:
    provider = RefreshTokenProvider(
        http_client=client,
        client_id="...",
        client_secret="...",
        refresh_token="...",
    )
    token = await provider.get_token()
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Protocol

import httpx

from student_portal.infrastructure.directory.exceptions import TokenError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
DEFAULT_EXPIRES_IN = 3600


class TokenProvider(Protocol):
    """Capability that supplies bearer tokens for the Directory API."""

    async def get_token(self) -> str:
        """Return a valid access token."""
        ...

    def invalidate(self) -> None:
        """Forget the cached token so the next call fetches a new one."""
        ...


@dataclass(frozen=True)
class AccessToken:
    """A cached access token.

    Attributes:
        value: The bearer token.
        expires_at: Monotonic clock time at which the token expires.
    """

    value: str
    expires_at: float


class RefreshTokenProvider:
    """OAuth2 refresh-token grant with in-memory caching.

    Attributes:
        _http: Shared HTTP client.
        _token: Currently cached token, if any.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        token_url: str = GOOGLE_TOKEN_URL,
        timeout: float = 10.0,
        expiry_margin: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the token provider.

        Args:
            http_client: Shared async HTTP client.
            client_id: OAuth client ID.
            client_secret: OAuth client secret.
            refresh_token: OAuth refresh token.
            token_url: Token endpoint URL.
            timeout: Request timeout in seconds.
            expiry_margin: Refresh this many seconds before expiry.
            clock: Monotonic clock, injectable for tests.
        """
        self._http = http_client
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._token_url = token_url
        self._timeout = timeout
        self._expiry_margin = expiry_margin
        self._clock = clock
        self._token: AccessToken | None = None

    def _is_fresh(self, token: AccessToken | None) -> bool:
        return token is not None and self._clock() < token.expires_at - self._expiry_margin

    async def get_token(self) -> str:
        """Return a cached token, refreshing it when close to expiry.

        Raises:
            TokenError: If the token endpoint fails or times out.
        """
        token = self._token
        if self._is_fresh(token):
            return token.value  # type: ignore[union-attr]

        token = await self._refresh()
        self._token = token
        return token.value

    def invalidate(self) -> None:
        """Drop the cached token."""
        self._token = None

    async def _refresh(self) -> AccessToken:
        logger.debug("Refreshing directory access token")

        try:
            response = await self._http.post(
                self._token_url,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "refresh_token": self._refresh_token,
                    "grant_type": "refresh_token",
                },
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("Token endpoint timed out")
            raise TokenError(
                "Token endpoint timed out",
                details={"error_type": type(e).__name__},
            ) from e
        except httpx.HTTPError as e:
            logger.error("Token endpoint connection error: %s", str(e))
            raise TokenError(
                f"Failed to connect to token endpoint: {str(e)}",
                details={"error_type": type(e).__name__},
            ) from e

        if response.status_code != 200:
            logger.error(
                "Token refresh failed: status=%s body=%s",
                response.status_code,
                response.text,
            )
            raise TokenError("Token refresh rejected", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise TokenError("Token endpoint returned invalid JSON") from e

        access_token = data.get("access_token")
        if not access_token:
            raise TokenError("Token endpoint response has no access_token")

        expires_in = int(data.get("expires_in") or DEFAULT_EXPIRES_IN)
        return AccessToken(value=access_token, expires_at=self._clock() + expires_in)
