# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Administrative endpoints.

All endpoints require the X-API-Key header to match ADMIN_API_KEY.

- POST /admin/limit - Change the registration limit
- POST /admin/reconcile - Compare the counter with the directory

Example:
    POST /api/v1/admin/limit
    X-API-Key: <key>
    {"limit": 250}
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from student_portal.api.dependencies import (
    get_counter_store,
    get_reconciliation_service,
    require_admin_key,
)
from student_portal.api.errors import reason_error
from student_portal.domains.quota import CounterStore, StoreUnavailableError, admit_snapshot
from student_portal.domains.reconciliation import CounterReconciliationService
from student_portal.infrastructure.directory import DirectoryError
from student_portal.models.quota import AdminSetLimit, QuotaStatus, ReconciliationResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin_key)])


@router.post("/limit", response_model=QuotaStatus)
async def update_limit(
    body: AdminSetLimit,
    store: CounterStore = Depends(get_counter_store),
) -> QuotaStatus:
    """Replace the registration limit; the count is left untouched.

    Lowering the limit below the current count closes registration but
    never removes existing accounts.

    Raises:
        HTTPException: 503 if the counter store is unavailable.
    """
    try:
        await store.update_limit(body.limit)
        snapshot = await store.read_count_and_limit()
    except StoreUnavailableError as e:
        raise reason_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "store_unavailable",
            "Registration counter unavailable",
        ) from e

    logger.info("Registration limit set to %d by admin", body.limit)
    return QuotaStatus(
        count=snapshot.count,
        limit=snapshot.limit,
        remaining=snapshot.remaining,
        accepting=admit_snapshot(snapshot).admitted,
        last_updated=snapshot.last_updated,
    )


@router.post("/reconcile", response_model=ReconciliationResponse)
async def reconcile(
    apply: bool | None = Query(default=None, description="Correct the counter on drift"),
    service: CounterReconciliationService = Depends(get_reconciliation_service),
) -> ReconciliationResponse:
    """Run a counter reconciliation.

    Raises:
        HTTPException: 503 if the directory or the counter store failed.
    """
    try:
        report = await service.reconcile(apply=apply)
    except DirectoryError as e:
        raise reason_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "directory_unavailable",
            "Directory service unavailable",
        ) from e
    except StoreUnavailableError as e:
        raise reason_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "store_unavailable",
            "Registration counter unavailable",
        ) from e

    return ReconciliationResponse(
        counted=report.counted,
        observed=report.observed,
        drift=report.drift,
        corrected=report.corrected,
        started_at=report.started_at,
        completed_at=report.completed_at,
    )
