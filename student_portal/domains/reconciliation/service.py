# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Counter reconciliation against the directory.

The registration counter can drift from the directory when a workflow ends
in PARTIAL_FAILURE or when accounts are changed outside the portal. A
reconciliation run counts the live accounts in the portal domain, excluding
configured administrative identities, and compares the result with the
counter read just before the listing. Drift is always reported. When
correction is enabled or explicitly requested, the drift is subtracted
from the counter in the database, so admissions that commit while the
directory is being listed stay counted.

Example:
    >>> service = CounterReconciliationService(directory, store, "example.org")
    >>> report = await service.reconcile()
    >>> report.drift
    0
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from student_portal.domains.provisioning.identity import normalize_domain
from student_portal.domains.quota import CounterStore
from student_portal.infrastructure.directory import DirectoryClient
from student_portal.utils.datetime import utc_now
from student_portal.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconciliationReport:
    """Outcome of one reconciliation run.

    Attributes:
        counted: Counter value before the run.
        observed: Live accounts found in the directory.
        drift: counted - observed; positive means the counter is too high.
        corrected: Whether the drift was subtracted from the counter.
        started_at: Run start time.
        completed_at: Run end time.
    """

    counted: int
    observed: int
    drift: int
    corrected: bool
    started_at: datetime
    completed_at: datetime


class CounterReconciliationService:
    """Compare the registration counter with the directory.

    Attributes:
        _directory: Directory client used to list accounts.
        _store: Registration counter store.
        domain: Portal e-mail domain.
        excluded: Lower-cased identities not counted as provisioned accounts.
        auto_correct: Default for whether drift is corrected.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        store: CounterStore,
        domain: str,
        excluded: Iterable[str] = (),
        auto_correct: bool = False,
    ) -> None:
        self._directory = directory
        self._store = store
        self.domain = normalize_domain(domain)
        self.excluded = frozenset(identity.strip().lower() for identity in excluded)
        self.auto_correct = auto_correct

    async def count_directory_accounts(self) -> int:
        """Count live accounts in the portal domain, minus exclusions.

        Raises:
            DirectoryError: If the directory could not be listed.
        """
        observed = 0
        async for email in self._directory.list_users(self.domain):
            if email.lower() not in self.excluded:
                observed += 1
        return observed

    async def reconcile(self, apply: bool | None = None) -> ReconciliationReport:
        """Run one reconciliation.

        Args:
            apply: Correct the counter on drift. None uses auto_correct.

        Returns:
            The reconciliation report.

        Raises:
            DirectoryError: If the directory could not be listed.
            StoreUnavailableError: If the counter could not be read or written.
        """
        started_at = utc_now()
        correct = self.auto_correct if apply is None else apply

        snapshot = await self._store.read_count_and_limit()
        observed = await self.count_directory_accounts()
        drift = snapshot.count - observed

        corrected = False
        if drift:
            logger.warning(
                "counter_drift_detected",
                counted=snapshot.count,
                observed=observed,
                drift=drift,
                correct=correct,
            )
            if correct:
                await self._store.adjust_count(-drift)
                corrected = True
        else:
            logger.info("counter_in_sync", counted=snapshot.count)

        return ReconciliationReport(
            counted=snapshot.count,
            observed=observed,
            drift=drift,
            corrected=corrected,
            started_at=started_at,
            completed_at=utc_now(),
        )
