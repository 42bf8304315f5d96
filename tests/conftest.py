# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- A real counter store on a temporary SQLite database
- Mock directory clients and counter stores for workflow tests
- Sample directory records
"""

from pathlib import Path
from typing import Any, AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from student_portal.core.config import clear_settings_cache
from student_portal.domains.quota import CounterSnapshot, CounterStore
from student_portal.infrastructure.database import Base, build_sessionmaker
from student_portal.infrastructure.directory import DirectoryClient, DirectoryUser

TEST_DOMAIN = "example.org"


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (may require services)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables."""
    return {
        "ENVIRONMENT": "development",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "EMAIL_DOMAIN": TEST_DOMAIN,
        "REGISTRATION_LIMIT": "200",
        "ADMIN_API_KEY": "test-admin-key",
        "GOOGLE_CLIENT_ID": "test-client",
        "GOOGLE_CLIENT_SECRET": "test-secret",
        "GOOGLE_REFRESH_TOKEN": "test-refresh-token",
        "RATE_LIMIT_ENABLED": "false",
    }


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch, test_environment: dict[str, str]):
    """Apply the test environment and reset the settings cache around the test."""
    for key, value in test_environment.items():
        monkeypatch.setenv(key, value)
    clear_settings_cache()
    yield test_environment
    clear_settings_cache()


# =============================================================================
# Counter Store Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def counter_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Async engine on a fresh SQLite file with the portal schema."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'counter.db'}",
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def counter_sessionmaker(counter_engine: AsyncEngine):
    return build_sessionmaker(counter_engine)


@pytest_asyncio.fixture(scope="function")
async def counter_store(counter_sessionmaker) -> CounterStore:
    """Initialized counter store with limit 200."""
    store = CounterStore(counter_sessionmaker, timeout=10.0)
    await store.initialize(default_limit=200)
    return store


@pytest.fixture
def mock_store() -> AsyncMock:
    """Counter store mock with room for new accounts."""
    store = AsyncMock(spec=CounterStore)
    store.read_count_and_limit.return_value = CounterSnapshot(count=10, limit=200)
    store.increment.return_value = None
    store.decrement.return_value = True
    return store


# =============================================================================
# Directory Fixtures
# =============================================================================


def make_directory_user(email: str, **overrides: Any) -> DirectoryUser:
    """Build a DirectoryUser as the API would return it."""
    values: dict[str, Any] = {
        "primary_email": email,
        "id": "1234567890",
        "given_name": "Alice",
        "family_name": "Liddell",
        "full_name": "Alice Liddell",
    }
    values.update(overrides)
    return DirectoryUser(**values)


@pytest.fixture
def mock_directory() -> AsyncMock:
    """Directory client mock where no account exists yet."""
    directory = AsyncMock(spec=DirectoryClient)
    directory.exists.return_value = False

    async def create_user(identity, attributes):
        return make_directory_user(
            identity,
            given_name=attributes.given_name,
            family_name=attributes.family_name,
            archived=attributes.archived,
        )

    directory.create_user.side_effect = create_user
    directory.delete_user.return_value = None
    return directory


@pytest.fixture
def mock_settings() -> MagicMock:
    """Settings mock with the values the services read."""
    settings = MagicMock()
    settings.registration.domain = TEST_DOMAIN
    settings.registration.min_trust_level = 3
    settings.registration.limit = 200
    settings.registration.secondary_prefix = "kst_"
    return settings


@pytest.fixture
def directory_user():
    """Factory for DirectoryUser records."""
    return make_directory_user
