# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Rate limits are applied per portal user when logged in, otherwise per IP
address. Provisioning endpoints carry a tighter limit than the default.

Example:
    @router.post("/register")
    @limiter.limit(provisioning_limit)
    async def register(request: Request, ...):
        ...
"""

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from student_portal.api.middleware.portal_session import get_portal_user
from student_portal.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Uses the portal username if logged in, otherwise the IP address.
    """
    user = get_portal_user(request)
    if user:
        return f"user:{user.username.lower()}"
    return f"ip:{get_remote_address(request)}"


def provisioning_limit() -> str:
    """Limit string for account creation and deletion endpoints."""
    return f"{get_settings().rate_limit.provisioning_per_minute}/minute"


settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.rate_limit.requests_per_minute}/minute"],
    storage_uri=settings.rate_limit.storage_uri,
    enabled=settings.rate_limit.enabled,
)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors with a 429 response."""
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": {
                "reason": "rate_limited",
                "message": "Too many requests. Please try again later.",
            }
        },
        headers={"Retry-After": "60"},
    )
