# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Alias endpoints.

- GET /aliases - List aliases of the caller's student account
- POST /aliases - Add suffix@domain
- DELETE /aliases/{alias} - Remove an alias
"""

import logging

from fastapi import APIRouter, Depends, status

from student_portal.api.dependencies import get_alias_service, require_trusted_user
from student_portal.api.errors import reason_error
from student_portal.api.middleware.portal_session import PortalUser
from student_portal.domains.aliases import (
    AliasConflictError,
    AliasNotFoundError,
    AliasService,
    InvalidAliasError,
)
from student_portal.domains.provisioning import student_identity
from student_portal.infrastructure.directory import DirectoryError
from student_portal.models.aliases import AliasCreateRequest, AliasListResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _directory_unavailable(e: DirectoryError):
    logger.error("Alias operation failed: %s", str(e))
    return reason_error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "directory_unavailable",
        "Directory service unavailable",
    )


@router.get("/aliases", response_model=AliasListResponse)
async def list_aliases(
    user: PortalUser = Depends(require_trusted_user),
    aliases: AliasService = Depends(get_alias_service),
) -> AliasListResponse:
    try:
        items = await aliases.list_aliases(user.username)
    except AliasNotFoundError as e:
        raise reason_error(status.HTTP_404_NOT_FOUND, "not_registered", e.message) from e
    except DirectoryError as e:
        raise _directory_unavailable(e) from e
    return AliasListResponse(email=student_identity(user.username, aliases.domain), aliases=items)


@router.post("/aliases", status_code=status.HTTP_201_CREATED)
async def add_alias(
    body: AliasCreateRequest,
    user: PortalUser = Depends(require_trusted_user),
    aliases: AliasService = Depends(get_alias_service),
) -> dict[str, str]:
    """Add an alias to the caller's student account.

    Raises:
        HTTPException: 400 invalid suffix, 404 not registered, 409 taken.
    """
    try:
        alias = await aliases.add_alias(user.username, body.suffix)
    except InvalidAliasError as e:
        raise reason_error(status.HTTP_400_BAD_REQUEST, "invalid_alias", e.message) from e
    except AliasConflictError as e:
        raise reason_error(status.HTTP_409_CONFLICT, "alias_taken", e.message) from e
    except AliasNotFoundError as e:
        raise reason_error(status.HTTP_404_NOT_FOUND, "not_registered", e.message) from e
    except DirectoryError as e:
        raise _directory_unavailable(e) from e
    return {"alias": alias}


@router.delete("/aliases/{alias}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_alias(
    alias: str,
    user: PortalUser = Depends(require_trusted_user),
    aliases: AliasService = Depends(get_alias_service),
) -> None:
    try:
        await aliases.delete_alias(user.username, alias)
    except InvalidAliasError as e:
        raise reason_error(status.HTTP_400_BAD_REQUEST, "invalid_alias", e.message) from e
    except AliasNotFoundError as e:
        raise reason_error(status.HTTP_404_NOT_FOUND, "alias_not_found", e.message) from e
    except DirectoryError as e:
        raise _directory_unavailable(e) from e
