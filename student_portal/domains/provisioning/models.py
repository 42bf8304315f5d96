# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Provisioning domain models.

This module defines the states, reason codes and value objects shared by
the provisioning and deprovisioning workflows:
- ProvisioningState / DeprovisioningState: workflow states
- RejectionReason / DeprovisioningReason: terminal reason codes
- ProvisioningAttempt: one request to provision an identity
- ProvisioningResult / DeprovisioningResult: successful outcomes
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from student_portal.infrastructure.directory.models import DirectoryUser, NewDirectoryUser

if TYPE_CHECKING:
    from student_portal.domains.provisioning.exceptions import CounterDesyncError


class ProvisioningState(str, Enum):
    """States of the provisioning workflow."""

    START = "start"
    ELIGIBILITY_CHECKED = "eligibility_checked"
    DUPLICATE_CHECKED = "duplicate_checked"
    QUOTA_CHECKED = "quota_checked"
    EXTERNAL_CREATED = "external_created"
    COUNTER_COMMITTED = "counter_committed"
    DONE = "done"
    REJECTED = "rejected"
    PARTIAL_FAILURE = "partial_failure"


class RejectionReason(str, Enum):
    """Why a provisioning attempt was rejected."""

    INVALID_IDENTITY = "invalid_identity"
    INSUFFICIENT_TRUST = "insufficient_trust"
    ALREADY_EXISTS = "already_exists"
    DIRECTORY_UNAVAILABLE = "directory_unavailable"
    QUOTA_EXCEEDED = "quota_exceeded"
    STORE_UNAVAILABLE = "store_unavailable"
    EXTERNAL_CREATE_FAILED = "external_create_failed"


class DeprovisioningState(str, Enum):
    """States of the deprovisioning workflow."""

    START = "start"
    PRIMARY_GUARD_CHECKED = "primary_guard_checked"
    EXTERNAL_DELETED = "external_deleted"
    COUNTER_DECREMENTED = "counter_decremented"
    DONE = "done"
    REJECTED = "rejected"
    FATAL = "fatal"


class DeprovisioningReason(str, Enum):
    """Why a deprovisioning request did not complete."""

    PRIMARY_ACCOUNT_GUARD = "primary_account_guard"
    EXTERNAL_DELETE_FAILED = "external_delete_failed"
    DIRECTORY_UNAVAILABLE = "directory_unavailable"


class AccountScope(str, Enum):
    """Which kind of account a deprovisioning workflow removes."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass
class ProvisioningAttempt:
    """A single request to provision an identity.

    Attributes:
        identity: E-mail address of the account to create.
        trust_level: Caller trust level reported by the OAuth provider.
        attributes: Attributes of the account to create.
    """

    identity: str
    trust_level: int
    attributes: NewDirectoryUser


@dataclass
class ProvisioningResult:
    """Outcome of a provisioning attempt that created an account.

    state is DONE when the counter was incremented, PARTIAL_FAILURE when
    the account exists but the counter could not be incremented.

    Attributes:
        identity: Identity of the created account.
        state: Terminal state, DONE or PARTIAL_FAILURE.
        account: Directory record of the created account.
        generated_credential: Password generated for the account, if any.
        desync: Counter desync error when state is PARTIAL_FAILURE.
        transitions: States visited, in order.
    """

    identity: str
    state: ProvisioningState
    account: DirectoryUser
    generated_credential: str | None = field(default=None, repr=False)
    desync: "CounterDesyncError | None" = None
    transitions: list[ProvisioningState] = field(default_factory=list)

    @property
    def counter_synced(self) -> bool:
        """Whether the counter reflects the new account."""
        return self.desync is None

    def public_attributes(self) -> dict[str, Any]:
        """Account attributes safe to return to the caller."""
        return self.account.public_attributes()


@dataclass
class DeprovisioningResult:
    """Outcome of a deprovisioning request that removed (or found absent) an account.

    Attributes:
        identity: Identity that was deleted.
        state: Terminal state, always DONE.
        already_absent: Whether the directory reported the account missing.
        counter_decremented: Whether the counter was decremented.
        desync: Counter desync error when the decrement failed.
        transitions: States visited, in order.
    """

    identity: str
    state: DeprovisioningState
    already_absent: bool = False
    counter_decremented: bool = False
    desync: "CounterDesyncError | None" = None
    transitions: list[DeprovisioningState] = field(default_factory=list)
