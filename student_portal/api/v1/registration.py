# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student registration endpoint.

- POST /register - Create the caller's student account

Example:
    POST /api/v1/register
    Cookie: oauthUsername=alice; oauthTrustLevel=3
    {
        "fullName": "Alice Liddell",
        "semester": "2025 Fall",
        "program": "Computer Science",
        "personalEmail": "alice@example.com",
        "password": "correct horse battery"
    }
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from student_portal.api.dependencies import get_account_service, require_portal_user
from student_portal.api.errors import provisioning_http_error
from student_portal.api.middleware.portal_session import PortalUser
from student_portal.api.middleware.rate_limit import limiter, provisioning_limit
from student_portal.domains.accounts import AccountService
from student_portal.domains.provisioning import ProvisioningRejectedError, ProvisioningResult
from student_portal.models.accounts import (
    AccountResponse,
    ProvisioningResponse,
    RegistrationForm,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def to_provisioning_response(result: ProvisioningResult) -> ProvisioningResponse:
    return ProvisioningResponse(
        account=AccountResponse(**result.public_attributes()),
        state=result.state.value,
        counter_synced=result.counter_synced,
        password=result.generated_credential,
    )


@router.post(
    "/register",
    response_model=ProvisioningResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register student account",
    responses={
        400: {"description": "Invalid identity"},
        403: {"description": "Trust level too low or registration limit reached"},
        409: {"description": "Student already registered"},
        502: {"description": "Directory rejected the account"},
        503: {"description": "Directory or counter store unavailable"},
    },
)
@limiter.limit(provisioning_limit)
async def register(
    request: Request,
    form: RegistrationForm,
    user: PortalUser = Depends(require_portal_user),
    accounts: AccountService = Depends(get_account_service),
) -> ProvisioningResponse:
    """Create the caller's student account.

    Raises:
        HTTPException: With a reason code when the attempt is rejected.
    """
    try:
        result = await accounts.register_student(user.username, user.trust_level, form)
    except ProvisioningRejectedError as e:
        raise provisioning_http_error(e) from e

    logger.info("Student account registered: %s (state=%s)", result.identity, result.state.value)
    return to_provisioning_response(result)
