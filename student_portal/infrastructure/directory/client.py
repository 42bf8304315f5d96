# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Directory API client for Google Workspace user management.

This module provides an async HTTP client for the Admin SDK Directory API.
The client handles:
- User lookup, creation and deletion
- Alias listing, creation and deletion
- Paged listing of the users of a domain

Every request carries a bearer token from the injected token provider.
A 401 response invalidates the cached token and the request is retried
once with a fresh token. Every request has a bounded timeout; a timeout
raises DirectoryTimeoutError and is never interpreted as success.

Example:
    client = DirectoryClient(
        http_client=httpx.AsyncClient(),
        token_provider=provider,
    )

    if not await client.exists("alice@example.org"):
        user = await client.create_user("alice@example.org", attributes)
"""

import logging
from typing import Any, AsyncIterator
from urllib.parse import quote

import httpx

from student_portal.infrastructure.directory.exceptions import (
    DirectoryAPIError,
    DirectoryConflictError,
    DirectoryNotFoundError,
    DirectoryTimeoutError,
    DirectoryUnavailableError,
)
from student_portal.infrastructure.directory.models import DirectoryUser, NewDirectoryUser
from student_portal.infrastructure.directory.token_provider import TokenProvider

logger = logging.getLogger(__name__)

DIRECTORY_API_URL = "https://admin.googleapis.com/admin/directory/v1"
PAGE_SIZE = 500


def _user_key(identity: str) -> str:
    return quote(identity, safe="")


class DirectoryClient:
    """Async client for the Directory API.

    Attributes:
        base_url: Directory API base URL.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: TokenProvider,
        base_url: str = DIRECTORY_API_URL,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the directory client.

        Args:
            http_client: Shared async HTTP client.
            token_provider: Supplier of bearer tokens.
            base_url: Directory API base URL.
            timeout: Request timeout in seconds.
        """
        self._http = http_client
        self._token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        retry_unauthorized: bool = True,
    ) -> httpx.Response:
        """Send an authenticated request.

        Raises:
            TokenError: If no access token can be obtained.
            DirectoryTimeoutError: If the request times out.
            DirectoryUnavailableError: On connection errors.
        """
        token = await self._token_provider.get_token()

        try:
            response = await self._http.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("Directory API %s %s timed out", method, path)
            raise DirectoryTimeoutError(
                f"Directory API request timed out: {method} {path}",
                details={"error_type": type(e).__name__},
            ) from e
        except httpx.HTTPError as e:
            logger.error("Directory API connection error: %s", str(e))
            raise DirectoryUnavailableError(
                f"Failed to connect to Directory API: {str(e)}",
                details={"error_type": type(e).__name__},
            ) from e

        if response.status_code == 401 and retry_unauthorized:
            logger.info("Directory API rejected access token, refreshing")
            self._token_provider.invalidate()
            return await self._request(
                method,
                path,
                params=params,
                json=json,
                retry_unauthorized=False,
            )

        return response

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        try:
            data = response.json()
        except ValueError:
            return default
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return f"{default}: {error['message']}"
        return default

    def _raise_for_status(
        self,
        response: httpx.Response,
        identity: str,
        operation: str,
    ) -> None:
        """Translate an error response into a directory exception."""
        if response.is_success:
            return

        message = self._error_message(response, f"Failed to {operation}")
        if response.status_code == 404:
            raise DirectoryNotFoundError(message, identity=identity, response_body=response.text)
        if response.status_code == 409:
            raise DirectoryConflictError(message, identity=identity, response_body=response.text)

        logger.error(
            "Directory API %s failed for %s: status=%s",
            operation,
            identity,
            response.status_code,
        )
        raise DirectoryAPIError(
            message,
            status_code=response.status_code,
            response_body=response.text,
        )

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user(self, identity: str) -> DirectoryUser:
        """Fetch a user by primary e-mail or alias.

        Raises:
            DirectoryNotFoundError: If the user does not exist.
            DirectoryAPIError: On other error responses.
            DirectoryUnavailableError: If the API cannot be reached.
        """
        response = await self._request("GET", f"/users/{_user_key(identity)}")
        self._raise_for_status(response, identity, "get user")
        return DirectoryUser.from_api(response.json())

    async def exists(self, identity: str) -> bool:
        """Check whether a user exists.

        Raises:
            DirectoryAPIError: On error responses other than 404.
            DirectoryUnavailableError: If the API cannot be reached.
        """
        try:
            await self.get_user(identity)
        except DirectoryNotFoundError:
            return False
        return True

    async def create_user(
        self,
        identity: str,
        attributes: NewDirectoryUser,
    ) -> DirectoryUser:
        """Create a user.

        Raises:
            DirectoryConflictError: If the user already exists.
            DirectoryAPIError: On other error responses.
            DirectoryTimeoutError: If the outcome is unknown because of a timeout.
            DirectoryUnavailableError: If the API cannot be reached.
        """
        logger.debug("Creating directory user: %s", identity)
        response = await self._request(
            "POST",
            "/users",
            json=attributes.to_payload(identity),
        )
        self._raise_for_status(response, identity, "create user")
        user = self._created_user(response, identity)
        logger.info("Created directory user: %s", user.primary_email)
        return user

    @staticmethod
    def _created_user(response: httpx.Response, identity: str) -> DirectoryUser:
        """Read the user resource from a successful create response.

        The 2xx status already confirms the account exists, so an unreadable
        body falls back to a record holding only the requested identity.
        """
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning(
                "Create response for %s is not a user resource (status %d)",
                identity,
                response.status_code,
            )
            return DirectoryUser(primary_email=identity)

        user = DirectoryUser.from_api(data)
        if not user.primary_email:
            user.primary_email = identity
        return user

    async def delete_user(self, identity: str) -> None:
        """Delete a user.

        Raises:
            DirectoryNotFoundError: If the user does not exist.
            DirectoryAPIError: On other error responses.
            DirectoryUnavailableError: If the API cannot be reached.
        """
        response = await self._request("DELETE", f"/users/{_user_key(identity)}")
        self._raise_for_status(response, identity, "delete user")
        logger.info("Deleted directory user: %s", identity)

    async def list_users(self, domain: str) -> AsyncIterator[str]:
        """Yield the primary e-mail of every user in a domain.

        Raises:
            DirectoryAPIError: On error responses.
            DirectoryUnavailableError: If the API cannot be reached.
        """
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {
                "domain": domain,
                "maxResults": PAGE_SIZE,
                "fields": "users(primaryEmail),nextPageToken",
            }
            if page_token:
                params["pageToken"] = page_token

            response = await self._request("GET", "/users", params=params)
            self._raise_for_status(response, domain, "list users")
            data = response.json()

            for user in data.get("users") or []:
                email = user.get("primaryEmail")
                if email:
                    yield email

            page_token = data.get("nextPageToken")
            if not page_token:
                break

    # =========================================================================
    # Aliases
    # =========================================================================

    async def list_aliases(self, identity: str) -> list[str]:
        """List the e-mail aliases of a user.

        Raises:
            DirectoryNotFoundError: If the user does not exist.
            DirectoryAPIError: On other error responses.
            DirectoryUnavailableError: If the API cannot be reached.
        """
        response = await self._request("GET", f"/users/{_user_key(identity)}/aliases")
        self._raise_for_status(response, identity, "list aliases")
        data = response.json()
        return [item["alias"] for item in data.get("aliases") or [] if item.get("alias")]

    async def add_alias(self, identity: str, alias: str) -> str:
        """Add an e-mail alias to a user.

        Raises:
            DirectoryConflictError: If the alias is already taken.
            DirectoryNotFoundError: If the user does not exist.
            DirectoryAPIError: On other error responses.
            DirectoryUnavailableError: If the API cannot be reached.
        """
        response = await self._request(
            "POST",
            f"/users/{_user_key(identity)}/aliases",
            json={"alias": alias},
        )
        self._raise_for_status(response, alias, "add alias")
        logger.info("Added alias %s to %s", alias, identity)
        return response.json().get("alias", alias)

    async def delete_alias(self, identity: str, alias: str) -> None:
        """Remove an e-mail alias from a user.

        Raises:
            DirectoryNotFoundError: If the user or alias does not exist.
            DirectoryAPIError: On other error responses.
            DirectoryUnavailableError: If the API cannot be reached.
        """
        response = await self._request(
            "DELETE",
            f"/users/{_user_key(identity)}/aliases/{_user_key(alias)}",
        )
        self._raise_for_status(response, alias, "delete alias")
        logger.info("Deleted alias %s from %s", alias, identity)
