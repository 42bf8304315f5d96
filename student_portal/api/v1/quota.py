# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quota status endpoint.

- GET /quota - Registered count, limit and whether registration is open
"""

from fastapi import APIRouter, Depends, status

from student_portal.api.dependencies import get_counter_store
from student_portal.api.errors import reason_error
from student_portal.domains.quota import CounterStore, StoreUnavailableError, admit_snapshot
from student_portal.models.quota import QuotaStatus

router = APIRouter()


@router.get("/quota", response_model=QuotaStatus)
async def get_quota(store: CounterStore = Depends(get_counter_store)) -> QuotaStatus:
    """Current registration quota.

    Raises:
        HTTPException: 503 if the counter store is unavailable.
    """
    try:
        snapshot = await store.read_count_and_limit()
    except StoreUnavailableError as e:
        raise reason_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "store_unavailable",
            "Registration counter unavailable",
        ) from e

    return QuotaStatus(
        count=snapshot.count,
        limit=snapshot.limit,
        remaining=snapshot.remaining,
        accepting=admit_snapshot(snapshot).admitted,
        last_updated=snapshot.last_updated,
    )
