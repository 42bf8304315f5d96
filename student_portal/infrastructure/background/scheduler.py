# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduler for periodic portal jobs.

Uses APScheduler's AsyncIOScheduler on the application event loop. The
only job is the registration counter reconciliation.

Example:
    scheduler = ReconciliationScheduler(service, interval_minutes=60)
    await scheduler.start()
    ...
    await scheduler.stop()
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from student_portal.domains.quota import StoreUnavailableError
from student_portal.domains.reconciliation import (
    CounterReconciliationService,
    ReconciliationReport,
)
from student_portal.infrastructure.directory import DirectoryError
from student_portal.utils.datetime import utc_now

logger = logging.getLogger(__name__)

RECONCILIATION_JOB_ID = "counter_reconciliation"


@dataclass
class JobStats:
    """Run statistics of the reconciliation job.

    Attributes:
        last_run: Time of the last run.
        last_report: Report of the last successful run.
        run_count: Total number of runs.
        error_count: Number of failed runs.
    """

    last_run: datetime | None = None
    last_report: ReconciliationReport | None = None
    run_count: int = 0
    error_count: int = 0


class ReconciliationScheduler:
    """Runs counter reconciliation on an interval.

    Attributes:
        _service: Reconciliation service.
        _interval_minutes: Minutes between runs.
        _scheduler: APScheduler instance while running.
        stats: Job statistics.
    """

    def __init__(
        self,
        service: CounterReconciliationService,
        interval_minutes: int = 60,
    ) -> None:
        self._service = service
        self._interval_minutes = interval_minutes
        self._scheduler: AsyncIOScheduler | None = None
        self.stats = JobStats()

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._scheduler is not None

    async def run_once(self) -> ReconciliationReport | None:
        """Execute one reconciliation run.

        Failures are counted and logged; the next interval retries.

        Returns:
            The report, or None if the run failed.
        """
        self.stats.last_run = utc_now()
        self.stats.run_count += 1
        try:
            report = await self._service.reconcile()
        except (DirectoryError, StoreUnavailableError) as e:
            self.stats.error_count += 1
            logger.error("Scheduled reconciliation failed: %s", str(e))
            return None
        self.stats.last_report = report
        return report

    async def start(self) -> None:
        """Start the scheduler and register the reconciliation job."""
        if self._scheduler is not None:
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id=RECONCILIATION_JOB_ID,
            name="Registration counter reconciliation",
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            "Reconciliation scheduler started (every %d minutes)",
            self._interval_minutes,
        )

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Reconciliation scheduler stopped")

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics."""
        report = self.stats.last_report
        return {
            "is_running": self.is_running,
            "interval_minutes": self._interval_minutes,
            "last_run": self.stats.last_run.isoformat() if self.stats.last_run else None,
            "run_count": self.stats.run_count,
            "error_count": self.stats.error_count,
            "last_drift": report.drift if report else None,
        }
