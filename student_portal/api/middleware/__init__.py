# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware."""

from student_portal.api.middleware.portal_session import (
    PortalSessionMiddleware,
    PortalUser,
    clear_session_cookies,
    get_portal_user,
)
from student_portal.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "PortalSessionMiddleware",
    "PortalUser",
    "clear_session_cookies",
    "get_portal_user",
    "limiter",
    "rate_limit_exceeded_handler",
]
