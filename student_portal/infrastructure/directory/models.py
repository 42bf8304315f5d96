# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Directory user records as exchanged with the Directory API."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DirectoryUser:
    """A user record returned by the Directory API.

    Attributes:
        id: Directory user ID.
        primary_email: Primary e-mail address (the identity).
        given_name: Given name.
        family_name: Family name.
        full_name: Display name.
        recovery_email: Recovery e-mail address.
        archived: Whether the account is archived.
        suspended: Whether the account is suspended.
        creation_time: Creation timestamp as reported by the API.
        last_login_time: Last login timestamp as reported by the API.
        aliases: E-mail aliases of the account.
    """

    primary_email: str
    id: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    full_name: str | None = None
    recovery_email: str | None = None
    archived: bool = False
    suspended: bool = False
    creation_time: str | None = None
    last_login_time: str | None = None
    aliases: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DirectoryUser":
        """Build a DirectoryUser from a Directory API user resource."""
        name = data.get("name") or {}
        return cls(
            primary_email=data.get("primaryEmail", ""),
            id=data.get("id"),
            given_name=name.get("givenName"),
            family_name=name.get("familyName"),
            full_name=name.get("fullName"),
            recovery_email=data.get("recoveryEmail"),
            archived=bool(data.get("archived", False)),
            suspended=bool(data.get("suspended", False)),
            creation_time=data.get("creationTime"),
            last_login_time=data.get("lastLoginTime"),
            aliases=list(data.get("aliases") or []),
        )

    def public_attributes(self) -> dict[str, Any]:
        """Attributes safe to return to the account owner."""
        return {
            "email": self.primary_email,
            "given_name": self.given_name,
            "family_name": self.family_name,
            "full_name": self.full_name,
            "recovery_email": self.recovery_email,
            "archived": self.archived,
            "suspended": self.suspended,
            "created_at": self.creation_time,
            "last_login_at": self.last_login_time,
            "aliases": list(self.aliases),
        }


@dataclass
class NewDirectoryUser:
    """Attributes for a user to be created in the directory.

    Attributes:
        given_name: Given name.
        family_name: Family name.
        password: Initial password.
        recovery_email: Recovery e-mail address.
        change_password_at_next_login: Force a password change on first login.
        archived: Create the account archived.
        org_unit_path: Organizational unit for the account.
        password_generated: Whether the password was generated by the portal
            and must be handed to the user once.
    """

    given_name: str
    family_name: str
    password: str = field(repr=False)
    recovery_email: str | None = None
    change_password_at_next_login: bool = False
    archived: bool = False
    org_unit_path: str | None = None
    password_generated: bool = False

    def to_payload(self, primary_email: str) -> dict[str, Any]:
        """Build the Directory API insert payload."""
        payload: dict[str, Any] = {
            "primaryEmail": primary_email,
            "name": {
                "givenName": self.given_name,
                "familyName": self.family_name,
            },
            "password": self.password,
        }
        if self.recovery_email:
            payload["recoveryEmail"] = self.recovery_email
        if self.change_password_at_next_login:
            payload["changePasswordAtNextLogin"] = True
        if self.archived:
            payload["archived"] = True
        if self.org_unit_path:
            payload["orgUnitPath"] = self.org_unit_path
        return payload
