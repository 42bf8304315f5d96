# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quota gate for new account admissions.

admit() is a pure predicate over a counter snapshot: a new account is
admitted only while count < limit. It is a best-effort check made right
before the directory create call, not a reservation; duplicate accounts
are prevented by the duplicate check and the directory's own uniqueness
constraint, not by the counter.

evaluate() reads a fresh snapshot and fails safe: if the store cannot be
read the gate denies, it never assumes room remains.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from student_portal.domains.quota.counter_store import StoreUnavailableError

if TYPE_CHECKING:
    from student_portal.domains.quota.counter_store import CounterSnapshot, CounterStore

logger = logging.getLogger(__name__)


class DenialReason(str, Enum):
    """Why the gate refused an admission."""

    QUOTA_EXCEEDED = "quota_exceeded"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True)
class Admission:
    """Gate decision.

    Attributes:
        admitted: Whether a new account may be provisioned.
        reason: Denial reason when not admitted.
        count: Count the decision was based on, if known.
        limit: Limit the decision was based on, if known.
    """

    admitted: bool
    reason: DenialReason | None = None
    count: int | None = None
    limit: int | None = None


def admit(count: int, limit: int) -> Admission:
    """Decide whether a new account may be provisioned.

    Args:
        count: Current provisioned-account count.
        limit: Registration limit.

    Returns:
        Admitted iff count < limit, otherwise denied with QUOTA_EXCEEDED.
    """
    if count < limit:
        return Admission(admitted=True, count=count, limit=limit)
    return Admission(
        admitted=False,
        reason=DenialReason.QUOTA_EXCEEDED,
        count=count,
        limit=limit,
    )


def admit_snapshot(snapshot: "CounterSnapshot") -> Admission:
    """Apply admit() to a counter snapshot."""
    return admit(snapshot.count, snapshot.limit)


async def evaluate(store: "CounterStore") -> Admission:
    """Read a fresh snapshot and decide admission.

    Args:
        store: Counter store to read from.

    Returns:
        The gate decision; STORE_UNAVAILABLE denial if the read failed.
    """
    try:
        snapshot = await store.read_count_and_limit()
    except StoreUnavailableError as e:
        logger.warning("Quota gate closed, counter store unavailable: %s", str(e))
        return Admission(admitted=False, reason=DenialReason.STORE_UNAVAILABLE)

    decision = admit_snapshot(snapshot)
    if not decision.admitted:
        logger.warning(
            "Quota gate closed: %d/%d accounts provisioned",
            snapshot.count,
            snapshot.limit,
        )
    return decision
