# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the account service."""

from unittest.mock import AsyncMock

import pytest

from student_portal.domains.accounts import AccountService
from student_portal.domains.provisioning import (
    AccountScope,
    DeprovisioningRejectedError,
    DeprovisioningWorkflow,
    ProvisioningState,
    ProvisioningWorkflow,
)
from student_portal.infrastructure.directory import DirectoryNotFoundError, DirectoryUnavailableError
from student_portal.models.accounts import RegistrationForm


@pytest.fixture
def account_service(mock_directory: AsyncMock, mock_store: AsyncMock) -> AccountService:
    return AccountService(
        directory=mock_directory,
        provisioning=ProvisioningWorkflow(mock_directory, mock_store, required_trust_level=3),
        primary_deprovisioning=DeprovisioningWorkflow(mock_directory, mock_store),
        secondary_deprovisioning=DeprovisioningWorkflow(
            mock_directory, mock_store, scope=AccountScope.SECONDARY
        ),
        domain="example.org",
    )


@pytest.fixture
def registration_form() -> RegistrationForm:
    return RegistrationForm(
        fullName="Alice Pleasance Liddell",
        semester="2",
        program="Mathematics",
        personalEmail="alice@personal.example.com",
        password="wonderland1",
    )


class TestRegistration:
    """Tests for student account registration."""

    @pytest.mark.asyncio
    async def test_register_student(
        self,
        account_service: AccountService,
        mock_directory: AsyncMock,
        mock_store: AsyncMock,
        registration_form: RegistrationForm,
    ) -> None:
        """Test that the form is mapped onto the directory attributes."""
        result = await account_service.register_student("alice", 3, registration_form)

        assert result.state == ProvisioningState.DONE
        assert result.generated_credential is None
        identity, attributes = mock_directory.create_user.await_args.args
        assert identity == "alice@example.org"
        assert attributes.given_name == "Alice"
        assert attributes.family_name == "Pleasance Liddell"
        assert attributes.password == "wonderland1"
        assert attributes.recovery_email == "alice@personal.example.com"
        assert attributes.archived is False
        mock_store.increment.assert_awaited_once()


class TestSecondaryAccount:
    """Tests for secondary account creation and deletion."""

    @pytest.mark.asyncio
    async def test_create_secondary(self, account_service: AccountService, mock_directory: AsyncMock) -> None:
        """Test that the secondary account is archived with a generated password."""
        result = await account_service.create_secondary_account("alice", 3)

        identity, attributes = mock_directory.create_user.await_args.args
        assert identity == "kst_alice@example.org"
        assert attributes.archived is True
        assert attributes.change_password_at_next_login is True
        assert attributes.family_name == "(Secondary KST)"
        assert len(attributes.password) == 24
        assert result.generated_credential == attributes.password

    @pytest.mark.asyncio
    async def test_generated_passwords_differ(self, account_service: AccountService, mock_directory: AsyncMock) -> None:
        """Test that every secondary account gets a fresh password."""
        first = await account_service.create_secondary_account("alice", 3)
        second = await account_service.create_secondary_account("bob", 3)

        assert first.generated_credential != second.generated_credential

    @pytest.mark.asyncio
    async def test_delete_secondary_targets_prefixed_identity(
        self,
        account_service: AccountService,
        mock_directory: AsyncMock,
    ) -> None:
        """Test that secondary deletion never touches the student account."""
        await account_service.delete_secondary_account("alice")

        mock_directory.delete_user.assert_awaited_once_with("kst_alice@example.org")

    @pytest.mark.asyncio
    async def test_empty_prefix_hits_guard(self, mock_directory: AsyncMock, mock_store: AsyncMock) -> None:
        """Test that a secondary identity equal to the primary is refused."""
        service = AccountService(
            directory=mock_directory,
            provisioning=ProvisioningWorkflow(mock_directory, mock_store),
            primary_deprovisioning=DeprovisioningWorkflow(mock_directory, mock_store),
            secondary_deprovisioning=DeprovisioningWorkflow(
                mock_directory, mock_store, scope=AccountScope.SECONDARY
            ),
            domain="example.org",
            secondary_prefix="",
        )

        with pytest.raises(DeprovisioningRejectedError):
            await service.delete_secondary_account("alice")

        mock_directory.delete_user.assert_not_awaited()


class TestStudentAccount:
    """Tests for student account lookup and deletion."""

    @pytest.mark.asyncio
    async def test_delete_student(self, account_service: AccountService, mock_directory: AsyncMock) -> None:
        result = await account_service.delete_student_account("alice")

        assert result.identity == "alice@example.org"
        mock_directory.delete_user.assert_awaited_once_with("alice@example.org")

    @pytest.mark.asyncio
    async def test_get_student_account(
        self,
        account_service: AccountService,
        mock_directory: AsyncMock,
        directory_user,
    ) -> None:
        """Test that the profile is fetched by student identity."""
        mock_directory.get_user.return_value = directory_user("alice@example.org")

        user = await account_service.get_student_account("alice")

        assert user is not None
        mock_directory.get_user.assert_awaited_once_with("alice@example.org")

    @pytest.mark.asyncio
    async def test_unregistered_student(self, account_service: AccountService, mock_directory: AsyncMock) -> None:
        """Test that a missing account is None, not an error."""
        mock_directory.get_user.side_effect = DirectoryNotFoundError("not found", "alice@example.org")

        assert await account_service.get_student_account("alice") is None

    @pytest.mark.asyncio
    async def test_lookup_failure_propagates(self, account_service: AccountService, mock_directory: AsyncMock) -> None:
        """Test that directory outages are not reported as unregistered."""
        mock_directory.get_user.side_effect = DirectoryUnavailableError("connection refused")

        with pytest.raises(DirectoryUnavailableError):
            await account_service.get_student_account("alice")


class TestRegistrationForm:
    """Tests for the registration form model."""

    def test_single_word_name(self) -> None:
        form = RegistrationForm(
            full_name="Alice",
            semester="1",
            program="Physics",
            personal_email="alice@personal.example.com",
            password="wonderland1",
        )

        assert form.split_name() == ("Alice", "Alice")

    def test_short_password_rejected(self) -> None:
        """Test that passwords under eight characters are refused."""
        with pytest.raises(ValueError):
            RegistrationForm(
                fullName="Alice Liddell",
                semester="1",
                program="Physics",
                personalEmail="alice@personal.example.com",
                password="short",
            )

    def test_blank_program_rejected(self) -> None:
        with pytest.raises(ValueError):
            RegistrationForm(
                fullName="Alice Liddell",
                semester="1",
                program="   ",
                personalEmail="alice@personal.example.com",
                password="wonderland1",
            )
