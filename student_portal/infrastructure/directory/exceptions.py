# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Custom exceptions for the directory client.

This module defines the exception hierarchy for directory operations:
- DirectoryError: Base exception for all directory errors
- DirectoryAPIError: Error response from the Directory API
- DirectoryNotFoundError: The user or alias does not exist (HTTP 404)
- DirectoryConflictError: The user or alias already exists (HTTP 409)
- DirectoryUnavailableError: The API could not be reached
- DirectoryTimeoutError: The API did not answer within the timeout
- TokenError: No access token could be obtained
"""


class DirectoryError(Exception):
    """Base exception for all directory errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        """Initialize directory error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class DirectoryAPIError(DirectoryError):
    """Error response from the Directory API.

    Attributes:
        status_code: HTTP status code from API response.
        response_body: Raw response body if available.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        details: dict | None = None,
    ):
        """Initialize directory API error.

        Args:
            message: Human-readable error description.
            status_code: HTTP status code from API response.
            response_body: Raw response body if available.
            details: Optional dictionary with additional error context.
        """
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return string representation with status code."""
        base = f"{self.message}"
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        if self.details:
            base = f"{base} - Details: {self.details}"
        return base


class DirectoryNotFoundError(DirectoryAPIError):
    """The requested user or alias does not exist.

    Attributes:
        identity: The user key or alias that was not found.
    """

    def __init__(
        self,
        message: str,
        identity: str | None = None,
        response_body: str | None = None,
    ):
        self.identity = identity
        super().__init__(message, status_code=404, response_body=response_body)


class DirectoryConflictError(DirectoryAPIError):
    """The user or alias being created already exists.

    Attributes:
        identity: The user key or alias that conflicted.
    """

    def __init__(
        self,
        message: str,
        identity: str | None = None,
        response_body: str | None = None,
    ):
        self.identity = identity
        super().__init__(message, status_code=409, response_body=response_body)


class DirectoryUnavailableError(DirectoryError):
    """The Directory API could not be reached."""


class DirectoryTimeoutError(DirectoryUnavailableError):
    """The Directory API did not answer within the configured timeout.

    For writes the outcome is unknown; callers treat it as a failure.
    """


class TokenError(DirectoryUnavailableError):
    """An access token could not be obtained from the token endpoint.

    Attributes:
        status_code: HTTP status code from the token endpoint, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)
