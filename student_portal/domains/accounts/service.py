# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Account service for portal users.

This module maps portal users onto the provisioning workflows. A portal
user owns two kinds of directory account, both counted against the
registration quota:
- the student account, named after the portal username
- the secondary account, "kst_" + username, created archived with a
  generated password that must be changed at first login

Example:
    >>> service = AccountService(directory, provisioning, primary_deprovisioning,
    ...                          secondary_deprovisioning, domain="example.org")
    >>> result = await service.register_student("alice", 3, form)
"""

import logging
import secrets

from student_portal.domains.provisioning import (
    DeprovisioningResult,
    DeprovisioningWorkflow,
    ProvisioningAttempt,
    ProvisioningResult,
    ProvisioningWorkflow,
    local_part,
    secondary_identity,
    student_identity,
)
from student_portal.domains.provisioning.identity import SECONDARY_PREFIX
from student_portal.infrastructure.directory import (
    DirectoryClient,
    DirectoryNotFoundError,
    DirectoryUser,
    NewDirectoryUser,
)
from student_portal.models.accounts import RegistrationForm

logger = logging.getLogger(__name__)

SECONDARY_FAMILY_NAME = "(Secondary KST)"
GENERATED_PASSWORD_BYTES = 12


class AccountService:
    """Student and secondary account operations for a portal user.

    Attributes:
        _directory: Directory client for profile lookups.
        _provisioning: Provisioning workflow shared by both account kinds.
        _primary_deprovisioning: Unscoped deprovisioning workflow.
        _secondary_deprovisioning: Secondary-scoped deprovisioning workflow.
        domain: E-mail domain of portal accounts.
        secondary_prefix: Local-part prefix of secondary accounts.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        provisioning: ProvisioningWorkflow,
        primary_deprovisioning: DeprovisioningWorkflow,
        secondary_deprovisioning: DeprovisioningWorkflow,
        domain: str,
        secondary_prefix: str = SECONDARY_PREFIX,
    ) -> None:
        self._directory = directory
        self._provisioning = provisioning
        self._primary_deprovisioning = primary_deprovisioning
        self._secondary_deprovisioning = secondary_deprovisioning
        self.domain = domain
        self.secondary_prefix = secondary_prefix

    def student_identity(self, username: str) -> str:
        return student_identity(username, self.domain)

    def secondary_identity(self, username: str) -> str:
        return secondary_identity(username, self.domain, self.secondary_prefix)

    # =========================================================================
    # Provisioning
    # =========================================================================

    async def register_student(
        self,
        username: str,
        trust_level: int,
        form: RegistrationForm,
    ) -> ProvisioningResult:
        """Create the student account of a portal user.

        Args:
            username: Portal username.
            trust_level: Portal trust level.
            form: Validated registration form.

        Returns:
            The provisioning result.

        Raises:
            ProvisioningRejectedError: If the workflow rejected the attempt.
        """
        given_name, family_name = form.split_name()
        attempt = ProvisioningAttempt(
            identity=self.student_identity(username),
            trust_level=trust_level,
            attributes=NewDirectoryUser(
                given_name=given_name,
                family_name=family_name,
                password=form.password,
                recovery_email=str(form.personal_email),
            ),
        )
        return await self._provisioning.provision(attempt)

    async def create_secondary_account(
        self,
        username: str,
        trust_level: int,
    ) -> ProvisioningResult:
        """Create the secondary account of a portal user.

        The generated password is returned once in the result and is not
        kept anywhere else.

        Raises:
            ProvisioningRejectedError: If the workflow rejected the attempt.
        """
        attempt = ProvisioningAttempt(
            identity=self.secondary_identity(username),
            trust_level=trust_level,
            attributes=NewDirectoryUser(
                given_name=local_part(username.strip()),
                family_name=SECONDARY_FAMILY_NAME,
                password=secrets.token_hex(GENERATED_PASSWORD_BYTES),
                change_password_at_next_login=True,
                archived=True,
                password_generated=True,
            ),
        )
        return await self._provisioning.provision(attempt)

    # =========================================================================
    # Deprovisioning
    # =========================================================================

    async def delete_student_account(self, username: str) -> DeprovisioningResult:
        """Delete the caller's own student account.

        Raises:
            DeprovisioningFatalError: If the directory delete failed.
        """
        identity = self.student_identity(username)
        return await self._primary_deprovisioning.deprovision(identity, caller_primary=identity)

    async def delete_secondary_account(self, username: str) -> DeprovisioningResult:
        """Delete the caller's secondary account.

        Raises:
            DeprovisioningRejectedError: If the secondary identity resolves to
                the caller's student account.
            DeprovisioningFatalError: If the directory delete failed.
        """
        return await self._secondary_deprovisioning.deprovision(
            self.secondary_identity(username),
            caller_primary=self.student_identity(username),
        )

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_student_account(self, username: str) -> DirectoryUser | None:
        """Directory profile of the caller's student account.

        Returns:
            The profile, or None when the student is not registered.

        Raises:
            DirectoryError: If the directory could not answer.
        """
        identity = self.student_identity(username)
        try:
            return await self._directory.get_user(identity)
        except DirectoryNotFoundError:
            logger.debug("No student account for %s", identity)
            return None
