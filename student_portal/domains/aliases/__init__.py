# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Aliases domain."""

from student_portal.domains.aliases.service import (
    AliasConflictError,
    AliasError,
    AliasNotFoundError,
    AliasService,
    InvalidAliasError,
)

__all__ = [
    "AliasConflictError",
    "AliasError",
    "AliasNotFoundError",
    "AliasService",
    "InvalidAliasError",
]
