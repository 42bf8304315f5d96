# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Accounts domain: student and secondary accounts of portal users."""

from student_portal.domains.accounts.service import AccountService

__all__ = ["AccountService"]
