# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions for the provisioning workflows.

- ProvisioningError: Base exception
- ProvisioningRejectedError: Provisioning ended in REJECTED
- DeprovisioningRejectedError: Deprovisioning refused before any side effect
- DeprovisioningFatalError: The external delete failed, nothing was changed
- CounterDesyncError: The directory changed but the counter did not follow
"""

from student_portal.domains.provisioning.models import (
    DeprovisioningReason,
    DeprovisioningState,
    ProvisioningState,
    RejectionReason,
)


class ProvisioningError(Exception):
    """Base exception for provisioning errors.

    Attributes:
        message: Human-readable error description.
        details: Additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ProvisioningRejectedError(ProvisioningError):
    """A provisioning attempt was rejected.

    No directory account was created and the counter was not touched.

    Attributes:
        reason: Rejection reason code.
        detail: Optional detail, for example the directory error message.
        state: Last state reached before the rejection.
    """

    def __init__(
        self,
        reason: RejectionReason,
        detail: str | None = None,
        state: ProvisioningState = ProvisioningState.START,
    ):
        self.reason = reason
        self.detail = detail
        self.state = state
        message = f"Provisioning rejected: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, {"reason": reason.value, "state": state.value})


class DeprovisioningRejectedError(ProvisioningError):
    """A deprovisioning request was refused with no side effects."""

    def __init__(self, reason: DeprovisioningReason, identity: str):
        self.reason = reason
        self.identity = identity
        self.state = DeprovisioningState.REJECTED
        super().__init__(
            f"Deprovisioning rejected: {reason.value}",
            {"reason": reason.value, "identity": identity},
        )


class DeprovisioningFatalError(ProvisioningError):
    """The external delete failed; the counter was not touched.

    The request may be retried.
    """

    def __init__(self, reason: DeprovisioningReason, identity: str, detail: str | None = None):
        self.reason = reason
        self.identity = identity
        self.detail = detail
        self.state = DeprovisioningState.FATAL
        message = f"Deprovisioning failed: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, {"reason": reason.value, "identity": identity})


class CounterDesyncError(ProvisioningError):
    """The counter no longer matches the directory.

    Never raised to workflow callers. It is logged at critical severity and
    attached to the result so operators can reconcile the counter.

    Attributes:
        identity: Account whose change was not counted.
        operation: The counter operation that failed.
        original_error: The counter store error.
    """

    def __init__(self, identity: str, operation: str, original_error: Exception | None = None):
        self.identity = identity
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Counter {operation} failed after directory change for {identity}",
            {"identity": identity, "operation": operation},
        )
