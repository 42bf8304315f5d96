# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the refresh-token access token provider."""

from urllib.parse import parse_qs

import httpx
import pytest

from student_portal.infrastructure.directory import RefreshTokenProvider, TokenError

TOKEN_URL = "https://oauth.test/token"


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_provider(handler, clock=None):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    provider = RefreshTokenProvider(
        http_client=http,
        client_id="client",
        client_secret="secret",
        refresh_token="refresh",
        token_url=TOKEN_URL,
        expiry_margin=60,
        clock=clock or FakeClock(),
    )
    return provider, http


class TestRefreshTokenProvider:
    """Tests for RefreshTokenProvider."""

    @pytest.mark.asyncio
    async def test_refresh_grant_form(self) -> None:
        """Test that the refresh-token grant is posted as a form."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"access_token": "abc", "expires_in": 3600})

        provider, http = make_provider(handler)
        async with http:
            assert await provider.get_token() == "abc"

        assert captured["form"]["grant_type"] == ["refresh_token"]
        assert captured["form"]["refresh_token"] == ["refresh"]
        assert captured["form"]["client_id"] == ["client"]

    @pytest.mark.asyncio
    async def test_token_is_cached(self) -> None:
        """Test that a fresh token is reused without another request."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"access_token": f"t{len(calls)}", "expires_in": 3600})

        provider, http = make_provider(handler)
        async with http:
            first = await provider.get_token()
            second = await provider.get_token()

        assert first == second == "t1"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_refreshes_inside_expiry_margin(self) -> None:
        """Test that the token is refreshed shortly before it expires."""
        clock = FakeClock()
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"access_token": f"t{len(calls)}", "expires_in": 3600})

        provider, http = make_provider(handler, clock)
        async with http:
            assert await provider.get_token() == "t1"
            clock.now += 3600 - 61
            assert await provider.get_token() == "t1"
            clock.now += 2
            assert await provider.get_token() == "t2"

    @pytest.mark.asyncio
    async def test_invalidate_forces_refresh(self) -> None:
        """Test that invalidate() drops the cached token."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"access_token": f"t{len(calls)}"})

        provider, http = make_provider(handler)
        async with http:
            await provider.get_token()
            provider.invalidate()
            assert await provider.get_token() == "t2"

    @pytest.mark.asyncio
    async def test_rejected_grant(self) -> None:
        """Test that a non-200 answer raises TokenError with the status."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_grant"})

        provider, http = make_provider(handler)
        async with http:
            with pytest.raises(TokenError) as exc_info:
                await provider.get_token()

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_access_token(self) -> None:
        """Test that a response without access_token raises TokenError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"token_type": "Bearer"})

        provider, http = make_provider(handler)
        async with http:
            with pytest.raises(TokenError):
                await provider.get_token()

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test that a token endpoint timeout raises TokenError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        provider, http = make_provider(handler)
        async with http:
            with pytest.raises(TokenError, match="timed out"):
                await provider.get_token()
