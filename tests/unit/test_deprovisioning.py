# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the deprovisioning workflow."""

from unittest.mock import AsyncMock

import pytest

from student_portal.domains.provisioning import (
    AccountScope,
    DeprovisioningFatalError,
    DeprovisioningReason,
    DeprovisioningRejectedError,
    DeprovisioningState,
    DeprovisioningWorkflow,
)
from student_portal.domains.quota import StoreUnavailableError
from student_portal.infrastructure.directory import (
    DirectoryAPIError,
    DirectoryNotFoundError,
    DirectoryTimeoutError,
    TokenError,
)

PRIMARY = "alice@example.org"
SECONDARY = "kst_alice@example.org"


class TestPrimaryDeprovisioning:
    """Tests for deleting the caller's own account."""

    @pytest.mark.asyncio
    async def test_delete_and_decrement(self, mock_directory: AsyncMock, mock_store: AsyncMock) -> None:
        """Test that a confirmed delete decrements the counter once."""
        workflow = DeprovisioningWorkflow(mock_directory, mock_store)

        result = await workflow.deprovision(PRIMARY, caller_primary=PRIMARY)

        assert result.state == DeprovisioningState.DONE
        assert result.already_absent is False
        assert result.counter_decremented is True
        mock_directory.delete_user.assert_awaited_once_with(PRIMARY)
        mock_store.decrement.assert_awaited_once()
        assert result.transitions == [
            DeprovisioningState.START,
            DeprovisioningState.PRIMARY_GUARD_CHECKED,
            DeprovisioningState.EXTERNAL_DELETED,
            DeprovisioningState.COUNTER_DECREMENTED,
            DeprovisioningState.DONE,
        ]

    @pytest.mark.asyncio
    async def test_already_absent_counts_as_deleted(
        self,
        mock_directory: AsyncMock,
        mock_store: AsyncMock,
    ) -> None:
        """Test that NotFound on delete is success with a single decrement."""
        mock_directory.delete_user.side_effect = DirectoryNotFoundError("Resource Not Found", PRIMARY)
        workflow = DeprovisioningWorkflow(mock_directory, mock_store)

        result = await workflow.deprovision(PRIMARY, caller_primary=PRIMARY)

        assert result.state == DeprovisioningState.DONE
        assert result.already_absent is True
        mock_store.decrement.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_counter_at_zero(self, mock_directory: AsyncMock, mock_store: AsyncMock) -> None:
        """Test that a floored decrement still completes."""
        mock_store.decrement.return_value = False
        workflow = DeprovisioningWorkflow(mock_directory, mock_store)

        result = await workflow.deprovision(PRIMARY, caller_primary=PRIMARY)

        assert result.state == DeprovisioningState.DONE
        assert result.counter_decremented is False
        assert result.desync is None

    @pytest.mark.asyncio
    async def test_primary_scope_has_no_guard(
        self,
        mock_directory: AsyncMock,
        mock_store: AsyncMock,
    ) -> None:
        """Test that the unscoped workflow may delete the caller's primary."""
        workflow = DeprovisioningWorkflow(mock_directory, mock_store, scope=AccountScope.PRIMARY)

        await workflow.deprovision(PRIMARY.upper(), caller_primary=PRIMARY)

        mock_directory.delete_user.assert_awaited_once()


class TestDeleteFailures:
    """Tests for failed directory deletes."""

    @pytest.mark.asyncio
    async def test_api_error_is_fatal(self, mock_directory: AsyncMock, mock_store: AsyncMock) -> None:
        """Test that an API error leaves the counter unchanged."""
        mock_directory.delete_user.side_effect = DirectoryAPIError("Forbidden", status_code=403)
        workflow = DeprovisioningWorkflow(mock_directory, mock_store)

        with pytest.raises(DeprovisioningFatalError) as exc_info:
            await workflow.deprovision(PRIMARY, caller_primary=PRIMARY)

        assert exc_info.value.reason == DeprovisioningReason.EXTERNAL_DELETE_FAILED
        assert exc_info.value.state == DeprovisioningState.FATAL
        mock_store.decrement.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [DirectoryTimeoutError("timed out"), TokenError("Token refresh rejected", status_code=400)],
    )
    async def test_unreachable_directory_is_fatal(
        self,
        mock_directory: AsyncMock,
        mock_store: AsyncMock,
        error: Exception,
    ) -> None:
        """Test that transport failures are reported as directory unavailable."""
        mock_directory.delete_user.side_effect = error
        workflow = DeprovisioningWorkflow(mock_directory, mock_store)

        with pytest.raises(DeprovisioningFatalError) as exc_info:
            await workflow.deprovision(PRIMARY, caller_primary=PRIMARY)

        assert exc_info.value.reason == DeprovisioningReason.DIRECTORY_UNAVAILABLE
        mock_store.decrement.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_decrement_failure_is_desync(
        self,
        mock_directory: AsyncMock,
        mock_store: AsyncMock,
    ) -> None:
        """Test that a failed decrement still reports the deletion."""
        mock_store.decrement.side_effect = StoreUnavailableError("database down")
        workflow = DeprovisioningWorkflow(mock_directory, mock_store)

        result = await workflow.deprovision(PRIMARY, caller_primary=PRIMARY)

        assert result.state == DeprovisioningState.DONE
        assert result.counter_decremented is False
        assert result.desync is not None
        assert result.desync.operation == "decrement"


class TestSecondaryScope:
    """Tests for the secondary-account guard."""

    @pytest.mark.asyncio
    async def test_secondary_is_deleted(self, mock_directory: AsyncMock, mock_store: AsyncMock) -> None:
        """Test that a secondary identity passes the guard."""
        workflow = DeprovisioningWorkflow(mock_directory, mock_store, scope=AccountScope.SECONDARY)

        result = await workflow.deprovision(SECONDARY, caller_primary=PRIMARY)

        assert result.state == DeprovisioningState.DONE
        mock_directory.delete_user.assert_awaited_once_with(SECONDARY)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", [PRIMARY, "Alice@Example.org", " alice@example.org "])
    async def test_primary_is_refused(
        self,
        mock_directory: AsyncMock,
        mock_store: AsyncMock,
        target: str,
    ) -> None:
        """Test that the secondary workflow never deletes the caller's primary."""
        workflow = DeprovisioningWorkflow(mock_directory, mock_store, scope=AccountScope.SECONDARY)

        with pytest.raises(DeprovisioningRejectedError) as exc_info:
            await workflow.deprovision(target, caller_primary=PRIMARY)

        assert exc_info.value.reason == DeprovisioningReason.PRIMARY_ACCOUNT_GUARD
        mock_directory.delete_user.assert_not_awaited()
        mock_store.decrement.assert_not_awaited()
