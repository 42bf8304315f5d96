# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    registration: Student registration.
    accounts: Account profile, deletion and secondary accounts.
    aliases: Alias management.
    quota: Public quota status.
    admin: Limit update and counter reconciliation.
"""

from fastapi import APIRouter

from student_portal.api.v1 import accounts, admin, aliases, quota, registration

router = APIRouter(prefix="/api/v1")

router.include_router(registration.router, tags=["Registration"])
router.include_router(accounts.router, tags=["Accounts"])
router.include_router(aliases.router, tags=["Aliases"])
router.include_router(quota.router, tags=["Quota"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])

__all__ = ["router"]
