# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Account request and response models."""

from pydantic import BaseModel, EmailStr, Field, field_validator


class RegistrationForm(BaseModel):
    """Student registration form.

    Semester and program are collected for the student card only; they are
    not sent to the directory.
    """

    full_name: str = Field(..., min_length=1, max_length=200, alias="fullName")
    semester: str = Field(..., min_length=1, max_length=50)
    program: str = Field(..., min_length=1, max_length=200)
    personal_email: EmailStr = Field(..., alias="personalEmail")
    password: str = Field(..., min_length=8, max_length=100)

    model_config = {"populate_by_name": True}

    @field_validator("full_name", "semester", "program")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    def split_name(self) -> tuple[str, str]:
        """Split the full name into given and family name.

        The first word is the given name and the rest the family name. A
        single-word name is used for both.
        """
        given, _, rest = self.full_name.partition(" ")
        family = rest.strip()
        return given, family or given


class AccountResponse(BaseModel):
    """Directory profile of a portal account."""

    email: str
    given_name: str | None = None
    family_name: str | None = None
    full_name: str | None = None
    recovery_email: str | None = None
    archived: bool = False
    suspended: bool = False
    created_at: str | None = None
    last_login_at: str | None = None
    aliases: list[str] = Field(default_factory=list)


class ProvisioningResponse(BaseModel):
    """Result of a provisioning request."""

    account: AccountResponse
    state: str
    counter_synced: bool
    password: str | None = Field(
        default=None,
        description="Generated password, returned exactly once",
    )


class DeletionResponse(BaseModel):
    """Result of a deprovisioning request."""

    email: str
    deleted: bool = True
    already_absent: bool = False
