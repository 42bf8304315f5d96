# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background jobs."""

from student_portal.infrastructure.background.scheduler import (
    JobStats,
    ReconciliationScheduler,
)

__all__ = ["JobStats", "ReconciliationScheduler"]
