# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Translation of workflow errors into HTTP errors.

Error responses carry a machine-readable reason code:

    {"detail": {"reason": "quota_exceeded", "message": "..."}}
"""

from fastapi import HTTPException, status

from student_portal.domains.provisioning import (
    DeprovisioningFatalError,
    DeprovisioningReason,
    DeprovisioningRejectedError,
    ProvisioningRejectedError,
    RejectionReason,
)

REJECTION_STATUS: dict[RejectionReason, int] = {
    RejectionReason.INVALID_IDENTITY: status.HTTP_400_BAD_REQUEST,
    RejectionReason.INSUFFICIENT_TRUST: status.HTTP_403_FORBIDDEN,
    RejectionReason.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    RejectionReason.QUOTA_EXCEEDED: status.HTTP_403_FORBIDDEN,
    RejectionReason.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    RejectionReason.DIRECTORY_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    RejectionReason.EXTERNAL_CREATE_FAILED: status.HTTP_502_BAD_GATEWAY,
}

DEPROVISIONING_STATUS: dict[DeprovisioningReason, int] = {
    DeprovisioningReason.PRIMARY_ACCOUNT_GUARD: status.HTTP_400_BAD_REQUEST,
    DeprovisioningReason.DIRECTORY_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    DeprovisioningReason.EXTERNAL_DELETE_FAILED: status.HTTP_502_BAD_GATEWAY,
}

REJECTION_MESSAGES: dict[RejectionReason, str] = {
    RejectionReason.INVALID_IDENTITY: "Invalid account identity",
    RejectionReason.INSUFFICIENT_TRUST: "Trust level too low to create an account",
    RejectionReason.ALREADY_EXISTS: "This account is already registered",
    RejectionReason.QUOTA_EXCEEDED: "Registration limit reached",
    RejectionReason.STORE_UNAVAILABLE: "Registration is temporarily unavailable",
    RejectionReason.DIRECTORY_UNAVAILABLE: "Directory service unavailable",
    RejectionReason.EXTERNAL_CREATE_FAILED: "Could not create the account",
}


def reason_error(status_code: int, reason: str, message: str) -> HTTPException:
    """Build an HTTPException with a reason-coded body."""
    return HTTPException(
        status_code=status_code,
        detail={"reason": reason, "message": message},
    )


def provisioning_http_error(error: ProvisioningRejectedError) -> HTTPException:
    message = REJECTION_MESSAGES[error.reason]
    if error.reason is RejectionReason.EXTERNAL_CREATE_FAILED and error.detail:
        message = f"{message}: {error.detail}"
    return reason_error(REJECTION_STATUS[error.reason], error.reason.value, message)


def deprovisioning_http_error(
    error: DeprovisioningRejectedError | DeprovisioningFatalError,
) -> HTTPException:
    if isinstance(error, DeprovisioningRejectedError):
        message = "The primary account cannot be deleted here"
    else:
        message = "Could not delete the account, please retry"
    return reason_error(DEPROVISIONING_STATUS[error.reason], error.reason.value, message)
