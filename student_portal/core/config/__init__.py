# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the student portal.

Example:
    >>> from student_portal.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from student_portal.core.config.settings import (
    AdminSettings,
    CORSSettings,
    DatabaseSettings,
    DirectorySettings,
    RateLimitSettings,
    ReconciliationSettings,
    RegistrationSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "AdminSettings",
    "CORSSettings",
    "DatabaseSettings",
    "DirectorySettings",
    "RateLimitSettings",
    "ReconciliationSettings",
    "RegistrationSettings",
]
