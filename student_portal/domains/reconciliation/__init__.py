# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reconciliation domain: audits the registration counter."""

from student_portal.domains.reconciliation.service import (
    CounterReconciliationService,
    ReconciliationReport,
)

__all__ = ["CounterReconciliationService", "ReconciliationReport"]
