# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""E-mail aliases on a portal user's student account.

Aliases do not count against the registration quota.
"""

import logging
import re

from student_portal.domains.provisioning.identity import normalize_domain, student_identity
from student_portal.infrastructure.directory import (
    DirectoryClient,
    DirectoryConflictError,
    DirectoryNotFoundError,
)

logger = logging.getLogger(__name__)

ALIAS_SUFFIX_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


class AliasError(Exception):
    """Base exception for alias errors."""

    def __init__(self, message: str, alias: str | None = None):
        self.message = message
        self.alias = alias
        super().__init__(message)


class InvalidAliasError(AliasError):
    """Raised when an alias or suffix is malformed or outside the portal domain."""


class AliasConflictError(AliasError):
    """Raised when the alias is already taken."""


class AliasNotFoundError(AliasError):
    """Raised when the student account or the alias does not exist."""


class AliasService:
    """List, add and delete aliases on student accounts.

    Attributes:
        _directory: Directory client.
        domain: Portal e-mail domain.
    """

    def __init__(self, directory: DirectoryClient, domain: str) -> None:
        self._directory = directory
        self.domain = normalize_domain(domain)

    def build_alias(self, suffix: str) -> str:
        """Build a full alias address from a suffix.

        Raises:
            InvalidAliasError: If the suffix is not a valid local part.
        """
        suffix = suffix.strip().lower()
        if not ALIAS_SUFFIX_PATTERN.match(suffix):
            raise InvalidAliasError(f"Invalid alias suffix: {suffix!r}", alias=suffix)
        return f"{suffix}@{self.domain}"

    async def list_aliases(self, username: str) -> list[str]:
        """Aliases of the user's student account.

        Raises:
            AliasNotFoundError: If the student account does not exist.
        """
        identity = student_identity(username, self.domain)
        try:
            return await self._directory.list_aliases(identity)
        except DirectoryNotFoundError as e:
            raise AliasNotFoundError(f"Student account {identity} not found") from e

    async def add_alias(self, username: str, suffix: str) -> str:
        """Add suffix@domain to the user's student account.

        Returns:
            The alias address.

        Raises:
            InvalidAliasError: If the suffix is malformed.
            AliasConflictError: If the alias is already taken.
            AliasNotFoundError: If the student account does not exist.
        """
        alias = self.build_alias(suffix)
        identity = student_identity(username, self.domain)
        try:
            created = await self._directory.add_alias(identity, alias)
        except DirectoryConflictError as e:
            raise AliasConflictError(f"Alias {alias} is already in use", alias=alias) from e
        except DirectoryNotFoundError as e:
            raise AliasNotFoundError(f"Student account {identity} not found", alias=alias) from e
        logger.info("Alias %s added for %s", created, identity)
        return created

    async def delete_alias(self, username: str, alias: str) -> None:
        """Remove an alias from the user's student account.

        Raises:
            InvalidAliasError: If the alias is outside the portal domain.
            AliasNotFoundError: If the account or alias does not exist.
        """
        alias = alias.strip().lower()
        local, _, domain = alias.partition("@")
        if domain != self.domain.lower() or not ALIAS_SUFFIX_PATTERN.match(local):
            raise InvalidAliasError(f"Alias {alias!r} is not in {self.domain}", alias=alias)

        identity = student_identity(username, self.domain)
        try:
            await self._directory.delete_alias(identity, alias)
        except DirectoryNotFoundError as e:
            raise AliasNotFoundError(f"Alias {alias} not found", alias=alias) from e
        logger.info("Alias %s removed from %s", alias, identity)
