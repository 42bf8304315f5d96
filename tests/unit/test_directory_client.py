# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Directory API client.

HTTP traffic is served by httpx.MockTransport handlers.
"""

import json
from typing import Callable

import httpx
import pytest

from student_portal.infrastructure.directory import (
    DirectoryAPIError,
    DirectoryClient,
    DirectoryConflictError,
    DirectoryNotFoundError,
    DirectoryTimeoutError,
    DirectoryUnavailableError,
    NewDirectoryUser,
)

BASE_URL = "https://directory.test/admin/directory/v1"


class StaticTokenProvider:
    """Token provider handing out numbered tokens."""

    def __init__(self) -> None:
        self.issued = 0
        self.invalidations = 0

    async def get_token(self) -> str:
        self.issued += 1
        return f"token-{self.issued}"

    def invalidate(self) -> None:
        self.invalidations += 1


def make_client(handler: Callable[[httpx.Request], httpx.Response]):
    tokens = StaticTokenProvider()
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DirectoryClient(http, tokens, base_url=BASE_URL, timeout=1.0), tokens, http


def user_resource(email: str) -> dict:
    return {
        "id": "42",
        "primaryEmail": email,
        "name": {"givenName": "Alice", "familyName": "Liddell", "fullName": "Alice Liddell"},
        "recoveryEmail": "alice@personal.example.com",
        "archived": False,
        "suspended": False,
        "creationTime": "2025-01-01T00:00:00.000Z",
    }


class TestUsers:
    """Tests for user operations."""

    @pytest.mark.asyncio
    async def test_get_user_parses_resource(self) -> None:
        """Test that a user resource is mapped to DirectoryUser."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.raw_path.endswith(b"/users/alice%40example.org")
            assert request.headers["Authorization"] == "Bearer token-1"
            return httpx.Response(200, json=user_resource("alice@example.org"))

        client, _, http = make_client(handler)
        async with http:
            user = await client.get_user("alice@example.org")

        assert user.primary_email == "alice@example.org"
        assert user.given_name == "Alice"
        assert user.recovery_email == "alice@personal.example.com"

    @pytest.mark.asyncio
    async def test_exists_false_on_404(self) -> None:
        """Test that a 404 lookup means the user does not exist."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": {"message": "Resource Not Found: userKey"}})

        client, _, http = make_client(handler)
        async with http:
            assert await client.exists("nobody@example.org") is False

    @pytest.mark.asyncio
    async def test_exists_raises_on_server_error(self) -> None:
        """Test that lookup errors other than 404 are not read as absence."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": {"message": "Backend Error"}})

        client, _, http = make_client(handler)
        async with http:
            with pytest.raises(DirectoryAPIError) as exc_info:
                await client.exists("alice@example.org")

        assert exc_info.value.status_code == 500
        assert "Backend Error" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_create_user_sends_payload(self) -> None:
        """Test that creation posts the Directory API insert payload."""
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=user_resource("kst_alice@example.org"))

        client, _, http = make_client(handler)
        attributes = NewDirectoryUser(
            given_name="alice",
            family_name="(Secondary KST)",
            password="0123456789abcdef01234567",
            change_password_at_next_login=True,
            archived=True,
        )
        async with http:
            await client.create_user("kst_alice@example.org", attributes)

        assert captured["method"] == "POST"
        assert captured["body"] == {
            "primaryEmail": "kst_alice@example.org",
            "name": {"givenName": "alice", "familyName": "(Secondary KST)"},
            "password": "0123456789abcdef01234567",
            "changePasswordAtNextLogin": True,
            "archived": True,
        }

    @pytest.mark.asyncio
    async def test_create_conflict(self) -> None:
        """Test that 409 on create raises DirectoryConflictError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"error": {"message": "Entity already exists."}})

        client, _, http = make_client(handler)
        async with http:
            with pytest.raises(DirectoryConflictError):
                await client.create_user(
                    "alice@example.org",
                    NewDirectoryUser(given_name="A", family_name="L", password="secret123"),
                )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "body"),
        [
            (200, {"text": "<html>ok</html>"}),
            (201, {"json": ["unexpected"]}),
            (204, {}),
        ],
    )
    async def test_create_success_with_unreadable_body(self, status: int, body: dict) -> None:
        """Test that a 2xx create is confirmed even without a user resource."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, **body)

        client, _, http = make_client(handler)
        async with http:
            user = await client.create_user(
                "alice@example.org",
                NewDirectoryUser(given_name="A", family_name="L", password="secret123"),
            )

        assert user.primary_email == "alice@example.org"
        assert user.id is None

    @pytest.mark.asyncio
    async def test_delete_not_found(self) -> None:
        """Test that deleting a missing user raises DirectoryNotFoundError."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            return httpx.Response(404)

        client, _, http = make_client(handler)
        async with http:
            with pytest.raises(DirectoryNotFoundError) as exc_info:
                await client.delete_user("gone@example.org")

        assert exc_info.value.identity == "gone@example.org"

    @pytest.mark.asyncio
    async def test_delete_success(self) -> None:
        """Test that a 204 delete returns normally."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        client, _, http = make_client(handler)
        async with http:
            await client.delete_user("alice@example.org")

    @pytest.mark.asyncio
    async def test_list_users_follows_pages(self) -> None:
        """Test that listing walks every page."""
        pages = {
            None: {"users": [{"primaryEmail": "a@example.org"}, {"primaryEmail": "b@example.org"}], "nextPageToken": "p2"},
            "p2": {"users": [{"primaryEmail": "c@example.org"}]},
        }

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["domain"] == "example.org"
            return httpx.Response(200, json=pages[request.url.params.get("pageToken")])

        client, _, http = make_client(handler)
        async with http:
            emails = [email async for email in client.list_users("example.org")]

        assert emails == ["a@example.org", "b@example.org", "c@example.org"]


class TestAuthentication:
    """Tests for token handling."""

    @pytest.mark.asyncio
    async def test_401_refreshes_token_once(self) -> None:
        """Test that a 401 invalidates the token and retries once."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["Authorization"])
            if len(seen) == 1:
                return httpx.Response(401)
            return httpx.Response(200, json=user_resource("alice@example.org"))

        client, tokens, http = make_client(handler)
        async with http:
            await client.get_user("alice@example.org")

        assert seen == ["Bearer token-1", "Bearer token-2"]
        assert tokens.invalidations == 1

    @pytest.mark.asyncio
    async def test_repeated_401_is_an_error(self) -> None:
        """Test that a second 401 is not retried again."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, json={"error": {"message": "Invalid Credentials"}})

        client, _, http = make_client(handler)
        async with http:
            with pytest.raises(DirectoryAPIError) as exc_info:
                await client.get_user("alice@example.org")

        assert exc_info.value.status_code == 401
        assert len(calls) == 2


class TestTransportErrors:
    """Tests for timeouts and connection failures."""

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test that a timeout raises DirectoryTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client, _, http = make_client(handler)
        async with http:
            with pytest.raises(DirectoryTimeoutError):
                await client.create_user(
                    "alice@example.org",
                    NewDirectoryUser(given_name="A", family_name="L", password="secret123"),
                )

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        """Test that connection failures raise DirectoryUnavailableError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _, http = make_client(handler)
        async with http:
            with pytest.raises(DirectoryUnavailableError):
                await client.exists("alice@example.org")


class TestAliases:
    """Tests for alias operations."""

    @pytest.mark.asyncio
    async def test_list_aliases(self) -> None:
        """Test that aliases are extracted from the response."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.raw_path.endswith(b"/users/alice%40example.org/aliases")
            return httpx.Response(
                200,
                json={"aliases": [{"alias": "al@example.org"}, {"alias": "liddell@example.org"}]},
            )

        client, _, http = make_client(handler)
        async with http:
            aliases = await client.list_aliases("alice@example.org")

        assert aliases == ["al@example.org", "liddell@example.org"]

    @pytest.mark.asyncio
    async def test_list_aliases_empty(self) -> None:
        """Test that a user without aliases yields an empty list."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"kind": "admin#directory#aliases"})

        client, _, http = make_client(handler)
        async with http:
            assert await client.list_aliases("alice@example.org") == []

    @pytest.mark.asyncio
    async def test_add_alias(self) -> None:
        """Test that adding an alias posts it."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"alias": "al@example.org"}
            return httpx.Response(200, json={"alias": "al@example.org"})

        client, _, http = make_client(handler)
        async with http:
            assert await client.add_alias("alice@example.org", "al@example.org") == "al@example.org"

    @pytest.mark.asyncio
    async def test_delete_alias_path(self) -> None:
        """Test that the alias is encoded in the delete path."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            assert request.url.raw_path.endswith(b"/aliases/al%40example.org")
            return httpx.Response(204)

        client, _, http = make_client(handler)
        async with http:
            await client.delete_alias("alice@example.org", "al@example.org")
