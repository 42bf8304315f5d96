# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Provisioning domain.

Workflows that create and delete directory accounts while keeping the
registration counter in step with the directory.
"""

from student_portal.domains.provisioning.deprovisioning import DeprovisioningWorkflow
from student_portal.domains.provisioning.exceptions import (
    CounterDesyncError,
    DeprovisioningFatalError,
    DeprovisioningRejectedError,
    ProvisioningError,
    ProvisioningRejectedError,
)
from student_portal.domains.provisioning.identity import (
    is_same_identity,
    local_part,
    normalize_domain,
    secondary_identity,
    student_identity,
)
from student_portal.domains.provisioning.models import (
    AccountScope,
    DeprovisioningReason,
    DeprovisioningResult,
    DeprovisioningState,
    ProvisioningAttempt,
    ProvisioningResult,
    ProvisioningState,
    RejectionReason,
)
from student_portal.domains.provisioning.service import ProvisioningWorkflow

__all__ = [
    "DeprovisioningWorkflow",
    "ProvisioningWorkflow",
    "CounterDesyncError",
    "DeprovisioningFatalError",
    "DeprovisioningRejectedError",
    "ProvisioningError",
    "ProvisioningRejectedError",
    "is_same_identity",
    "local_part",
    "normalize_domain",
    "secondary_identity",
    "student_identity",
    "AccountScope",
    "DeprovisioningReason",
    "DeprovisioningResult",
    "DeprovisioningState",
    "ProvisioningAttempt",
    "ProvisioningResult",
    "ProvisioningState",
    "RejectionReason",
]
