# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Account endpoints.

- GET /account - Profile of the caller's student account
- POST /account/delete - Delete the caller's student account and log out
- POST /secondary-account - Create the caller's secondary account
- DELETE /secondary-account - Delete the caller's secondary account
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from student_portal.api.dependencies import (
    get_account_service,
    require_portal_user,
    require_trusted_user,
)
from student_portal.api.errors import (
    deprovisioning_http_error,
    provisioning_http_error,
    reason_error,
)
from student_portal.api.middleware.portal_session import PortalUser, clear_session_cookies
from student_portal.api.middleware.rate_limit import limiter, provisioning_limit
from student_portal.api.v1.registration import to_provisioning_response
from student_portal.domains.accounts import AccountService
from student_portal.domains.provisioning import (
    DeprovisioningFatalError,
    DeprovisioningRejectedError,
    ProvisioningRejectedError,
)
from student_portal.infrastructure.directory import DirectoryError
from student_portal.models.accounts import (
    AccountResponse,
    DeletionResponse,
    ProvisioningResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/account", response_model=AccountResponse)
async def get_account(
    user: PortalUser = Depends(require_portal_user),
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    """Get the caller's student account.

    Raises:
        HTTPException: 404 if not registered, 503 if the directory failed.
    """
    try:
        account = await accounts.get_student_account(user.username)
    except DirectoryError as e:
        logger.error("Account lookup failed: %s", str(e))
        raise reason_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "directory_unavailable",
            "Directory service unavailable",
        ) from e

    if account is None:
        raise reason_error(
            status.HTTP_404_NOT_FOUND,
            "not_registered",
            "No student account for this user",
        )
    return AccountResponse(**account.public_attributes())


@router.post("/account/delete", response_model=DeletionResponse)
@limiter.limit(provisioning_limit)
async def delete_account(
    request: Request,
    response: Response,
    user: PortalUser = Depends(require_trusted_user),
    accounts: AccountService = Depends(get_account_service),
) -> DeletionResponse:
    """Delete the caller's student account and clear the portal session.

    Raises:
        HTTPException: 502/503 if the directory delete failed.
    """
    try:
        result = await accounts.delete_student_account(user.username)
    except (DeprovisioningRejectedError, DeprovisioningFatalError) as e:
        raise deprovisioning_http_error(e) from e

    clear_session_cookies(response)
    return DeletionResponse(email=result.identity, already_absent=result.already_absent)


@router.post(
    "/secondary-account",
    response_model=ProvisioningResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(provisioning_limit)
async def create_secondary_account(
    request: Request,
    user: PortalUser = Depends(require_portal_user),
    accounts: AccountService = Depends(get_account_service),
) -> ProvisioningResponse:
    """Create the caller's secondary account.

    The generated password is in the response and is not shown again.

    Raises:
        HTTPException: With a reason code when the attempt is rejected.
    """
    try:
        result = await accounts.create_secondary_account(user.username, user.trust_level)
    except ProvisioningRejectedError as e:
        raise provisioning_http_error(e) from e
    return to_provisioning_response(result)


@router.delete("/secondary-account", response_model=DeletionResponse)
@limiter.limit(provisioning_limit)
async def delete_secondary_account(
    request: Request,
    user: PortalUser = Depends(require_trusted_user),
    accounts: AccountService = Depends(get_account_service),
) -> DeletionResponse:
    """Delete the caller's secondary account.

    Raises:
        HTTPException: 400 if it resolves to the primary account, 502/503
            if the directory delete failed.
    """
    try:
        result = await accounts.delete_secondary_account(user.username)
    except (DeprovisioningRejectedError, DeprovisioningFatalError) as e:
        raise deprovisioning_http_error(e) from e
    return DeletionResponse(email=result.identity, already_absent=result.already_absent)
