# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Directory API adapter.

This package wraps the Google Workspace Admin SDK Directory API:
- DirectoryClient: users and aliases
- RefreshTokenProvider: bearer tokens from an OAuth2 refresh token
- Exceptions distinguishing not-found, conflict, API and availability errors
"""

from student_portal.infrastructure.directory.client import DirectoryClient
from student_portal.infrastructure.directory.exceptions import (
    DirectoryAPIError,
    DirectoryConflictError,
    DirectoryError,
    DirectoryNotFoundError,
    DirectoryTimeoutError,
    DirectoryUnavailableError,
    TokenError,
)
from student_portal.infrastructure.directory.models import DirectoryUser, NewDirectoryUser
from student_portal.infrastructure.directory.token_provider import (
    AccessToken,
    RefreshTokenProvider,
    TokenProvider,
)

__all__ = [
    "DirectoryClient",
    "DirectoryAPIError",
    "DirectoryConflictError",
    "DirectoryError",
    "DirectoryNotFoundError",
    "DirectoryTimeoutError",
    "DirectoryUnavailableError",
    "TokenError",
    "DirectoryUser",
    "NewDirectoryUser",
    "AccessToken",
    "RefreshTokenProvider",
    "TokenProvider",
]
