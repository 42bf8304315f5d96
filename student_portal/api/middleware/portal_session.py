# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Portal session middleware.

The OAuth front end authenticates the user and stores the result in
cookies. This middleware reads them into request.state.user. Validation of
the OAuth exchange is the front end's job; the cookies are taken as given.

Example:
    # Request from a logged-in portal user
    POST /api/v1/register
    Cookie: oauthUsername=alice; oauthTrustLevel=3
"""

import logging
from dataclasses import dataclass
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from student_portal.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

USERNAME_COOKIE = "oauthUsername"
USER_ID_COOKIE = "oauthUserId"
TRUST_LEVEL_COOKIE = "oauthTrustLevel"
STATE_COOKIE = "oauthState"

SESSION_COOKIES = (USERNAME_COOKIE, USER_ID_COOKIE, TRUST_LEVEL_COOKIE, STATE_COOKIE)


@dataclass(frozen=True)
class PortalUser:
    """Portal user asserted by the OAuth front end.

    Attributes:
        username: OAuth username.
        trust_level: OAuth trust level, 0 when absent or malformed.
        user_id: OAuth user ID, if present.
    """

    username: str
    trust_level: int = 0
    user_id: str | None = None

    def is_trusted(self, min_trust_level: int) -> bool:
        return self.trust_level >= min_trust_level


def parse_trust_level(raw: str | None) -> int:
    """Parse the trust level cookie, treating anything invalid as 0."""
    if not raw:
        return 0
    try:
        return int(raw.strip())
    except ValueError:
        logger.debug("Ignoring malformed trust level cookie: %r", raw)
        return 0


def user_from_cookies(cookies: dict[str, str]) -> PortalUser | None:
    """Build a PortalUser from session cookies, None when not logged in."""
    username = (cookies.get(USERNAME_COOKIE) or "").strip()
    if not username:
        return None
    return PortalUser(
        username=username,
        trust_level=parse_trust_level(cookies.get(TRUST_LEVEL_COOKIE)),
        user_id=cookies.get(USER_ID_COOKIE) or None,
    )


class PortalSessionMiddleware(BaseHTTPMiddleware):
    """Populate request.state.user from the portal session cookies.

    Requests without a session continue with request.state.user = None;
    endpoints decide whether a user is required. The username is bound to
    the log context for the duration of the request.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        user = user_from_cookies(request.cookies)
        request.state.user = user

        clear_context()
        if user is not None:
            bind_context(username=user.username)
        try:
            return await call_next(request)
        finally:
            clear_context()


def get_portal_user(request: Request) -> PortalUser | None:
    """Get the portal user from request state."""
    user = getattr(request.state, "user", None)
    if user is None:
        # Middleware not installed, e.g. a bare router under test.
        user = user_from_cookies(request.cookies)
    return user


def clear_session_cookies(response: Response) -> None:
    """Expire all portal session cookies on the response."""
    for name in SESSION_COOKIES:
        response.delete_cookie(name, path="/", secure=True, httponly=True, samesite="lax")
