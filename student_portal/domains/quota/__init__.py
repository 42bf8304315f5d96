# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quota domain: the durable registration counter and the admission gate."""

from student_portal.domains.quota.counter_store import (
    CounterSnapshot,
    CounterStore,
    StoreUnavailableError,
)
from student_portal.domains.quota.gate import (
    Admission,
    DenialReason,
    admit,
    admit_snapshot,
    evaluate,
)

__all__ = [
    "CounterSnapshot",
    "CounterStore",
    "StoreUnavailableError",
    "Admission",
    "DenialReason",
    "admit",
    "admit_snapshot",
    "evaluate",
]
