# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Durable registration counter store.

The counter is a single database row holding the number of provisioned
accounts and the registration limit. Every mutation is a single UPDATE
statement whose arithmetic is evaluated by the database, so concurrent
requests never lose updates and no application-level lock is needed:

    UPDATE registration_counter SET count = count + 1 WHERE id = 1
    UPDATE registration_counter SET count = count - 1 WHERE id = 1 AND count > 0

Any failure to talk to the database, including exceeding the per-operation
timeout, is reported as StoreUnavailableError. Callers must treat that as
"cannot admit" and never assume the operation succeeded.

Example:
    >>> store = CounterStore(sessionmaker, timeout=5.0)
    >>> await store.initialize(default_limit=200)
    >>> snapshot = await store.read_count_and_limit()
    >>> await store.increment()
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy import case, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from student_portal.infrastructure.database.models import (
    COUNTER_ROW_ID,
    RegistrationCounter,
)
from student_portal.utils.datetime import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreUnavailableError(Exception):
    """Raised when the counter store cannot complete an operation.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying database or timeout error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


@dataclass(frozen=True)
class CounterSnapshot:
    """Point-in-time view of the registration counter.

    Attributes:
        count: Provisioned accounts tracked by the portal.
        limit: Registration limit.
        last_updated: Time of the last counter mutation.
    """

    count: int
    limit: int
    last_updated: datetime | None = None

    @property
    def remaining(self) -> int:
        """Admissions left before the limit is reached."""
        return max(self.limit - self.count, 0)

    @property
    def is_full(self) -> bool:
        """Whether the limit has been reached or exceeded."""
        return self.count >= self.limit


class CounterStore:
    """Atomic operations on the singleton registration counter row.

    The store exclusively owns the registration_counter table. It keeps an
    advisory reachability flag updated by every operation; the flag is
    informational only and never used to skip a real database call.

    Attributes:
        _sessionmaker: Async sessionmaker bound to the portal database.
        _timeout: Upper bound in seconds for each operation.
        _reachable: Outcome of the most recent operation, None before the first.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        timeout: float = 5.0,
    ) -> None:
        """Initialize the counter store.

        Args:
            sessionmaker: Async sessionmaker for the portal database.
            timeout: Per-operation timeout in seconds.
        """
        self._sessionmaker = sessionmaker
        self._timeout = timeout
        self._reachable: bool | None = None

    @property
    def is_reachable(self) -> bool | None:
        """Advisory result of the last store operation."""
        return self._reachable

    # =========================================================================
    # Execution helpers
    # =========================================================================

    async def _execute(self, func: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async with self._sessionmaker() as session:
            async with session.begin():
                return await func(session)

    async def _run(
        self,
        operation: str,
        func: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        """Run one transactional operation under the store timeout.

        Args:
            operation: Operation name for logs and error messages.
            func: Coroutine function receiving the session.

        Returns:
            The value returned by func.

        Raises:
            StoreUnavailableError: On timeout or database failure.
            IntegrityError: When the database rejects a write on a constraint.
        """
        try:
            result = await asyncio.wait_for(self._execute(func), timeout=self._timeout)
        except StoreUnavailableError:
            self._reachable = True
            raise
        except IntegrityError:
            self._reachable = True
            raise
        except asyncio.TimeoutError as e:
            self._reachable = False
            logger.error(
                "Counter store %s timed out after %.1fs", operation, self._timeout
            )
            raise StoreUnavailableError(
                f"Counter store {operation} timed out", e
            ) from e
        except (SQLAlchemyError, OSError) as e:
            self._reachable = False
            logger.error("Counter store %s failed: %s", operation, str(e))
            raise StoreUnavailableError(f"Counter store {operation} failed", e) from e

        self._reachable = True
        return result

    @staticmethod
    def _not_initialized() -> StoreUnavailableError:
        return StoreUnavailableError("Registration counter is not initialized")

    # =========================================================================
    # Reads
    # =========================================================================

    async def read_count_and_limit(self) -> CounterSnapshot:
        """Read the current counter snapshot.

        Returns:
            CounterSnapshot with count, limit and last update time.

        Raises:
            StoreUnavailableError: If the store cannot be read or the row is missing.
        """

        async def _read(session: AsyncSession) -> CounterSnapshot:
            result = await session.execute(
                select(RegistrationCounter).where(
                    RegistrationCounter.id == COUNTER_ROW_ID
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise self._not_initialized()
            return CounterSnapshot(
                count=row.count,
                limit=row.registration_limit,
                last_updated=row.last_updated,
            )

        return await self._run("read", _read)

    async def check_connection(self) -> bool:
        """Probe the store with a trivial query.

        Returns:
            True if the store answered, False otherwise.
        """

        async def _probe(session: AsyncSession) -> None:
            await session.execute(text("SELECT 1"))

        try:
            await self._run("probe", _probe)
        except StoreUnavailableError:
            return False
        return True

    # =========================================================================
    # Atomic mutations
    # =========================================================================

    async def increment(self) -> None:
        """Atomically add one to the count.

        Raises:
            StoreUnavailableError: If the update could not be applied.
        """

        async def _increment(session: AsyncSession) -> None:
            result = await session.execute(
                update(RegistrationCounter)
                .where(RegistrationCounter.id == COUNTER_ROW_ID)
                .values(count=RegistrationCounter.count + 1, last_updated=utc_now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise self._not_initialized()

        await self._run("increment", _increment)
        logger.debug("Registration counter incremented")

    async def decrement(self) -> bool:
        """Atomically subtract one from the count, never going below zero.

        Returns:
            True if the count was decremented, False if it was already zero.

        Raises:
            StoreUnavailableError: If the update could not be applied.
        """

        async def _decrement(session: AsyncSession) -> bool:
            result = await session.execute(
                update(RegistrationCounter)
                .where(
                    RegistrationCounter.id == COUNTER_ROW_ID,
                    RegistrationCounter.count > 0,
                )
                .values(count=RegistrationCounter.count - 1, last_updated=utc_now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                return True

            exists = await session.execute(
                select(RegistrationCounter.id).where(
                    RegistrationCounter.id == COUNTER_ROW_ID
                )
            )
            if exists.scalar_one_or_none() is None:
                raise self._not_initialized()
            return False

        decremented = await self._run("decrement", _decrement)
        if decremented:
            logger.debug("Registration counter decremented")
        else:
            logger.warning("Registration counter already at zero, decrement skipped")
        return decremented

    async def update_limit(self, new_limit: int) -> None:
        """Replace the registration limit without touching the count.

        Args:
            new_limit: New limit, must be non-negative.

        Raises:
            ValueError: If new_limit is negative.
            StoreUnavailableError: If the update could not be applied.
        """
        if new_limit < 0:
            raise ValueError(f"Registration limit must be >= 0, got {new_limit}")

        async def _update(session: AsyncSession) -> None:
            result = await session.execute(
                update(RegistrationCounter)
                .where(RegistrationCounter.id == COUNTER_ROW_ID)
                .values(registration_limit=new_limit, last_updated=utc_now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise self._not_initialized()

        await self._run("update_limit", _update)
        logger.info("Registration limit updated to %d", new_limit)

    async def adjust_count(self, delta: int) -> int:
        """Shift the count by delta in one statement, flooring at zero.

        Reconciliation uses this to apply observed drift. The arithmetic
        runs in the database, so increments and decrements committed while
        the directory was being listed are preserved:

            UPDATE registration_counter
            SET count = CASE WHEN count + :delta < 0 THEN 0 ELSE count + :delta END

        Args:
            delta: Amount to add; negative values lower the count.

        Returns:
            The count after the adjustment.

        Raises:
            StoreUnavailableError: If the update could not be applied.
        """
        shifted = RegistrationCounter.count + delta

        async def _adjust(session: AsyncSession) -> int:
            result = await session.execute(
                update(RegistrationCounter)
                .where(RegistrationCounter.id == COUNTER_ROW_ID)
                .values(
                    count=case((shifted < 0, 0), else_=shifted),
                    last_updated=utc_now(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise self._not_initialized()
            current = await session.execute(
                select(RegistrationCounter.count).where(
                    RegistrationCounter.id == COUNTER_ROW_ID
                )
            )
            return current.scalar_one()

        count = await self._run("adjust_count", _adjust)
        logger.warning("Registration counter adjusted by %+d to %d", delta, count)
        return count

    # =========================================================================
    # Initialization
    # =========================================================================

    async def initialize(self, default_limit: int) -> bool:
        """Create the counter row if it does not exist.

        A row that already exists is left untouched. When another process
        inserts the row between our read and our insert, the duplicate-key
        collision is treated as "already initialized" and the limit is
        reconciled to default_limit (last writer wins, count preserved).

        Args:
            default_limit: Limit for a newly created counter.

        Returns:
            True if this call created the row.

        Raises:
            ValueError: If default_limit is negative.
            StoreUnavailableError: If the store cannot be reached.
        """
        if default_limit < 0:
            raise ValueError(f"Registration limit must be >= 0, got {default_limit}")

        async def _ensure(session: AsyncSession) -> bool:
            result = await session.execute(
                select(RegistrationCounter.id).where(
                    RegistrationCounter.id == COUNTER_ROW_ID
                )
            )
            if result.scalar_one_or_none() is not None:
                return False
            session.add(
                RegistrationCounter(
                    id=COUNTER_ROW_ID,
                    count=0,
                    registration_limit=default_limit,
                    last_updated=utc_now(),
                )
            )
            await session.flush()
            return True

        try:
            created = await self._run("initialize", _ensure)
        except IntegrityError:
            logger.info(
                "Registration counter initialized concurrently, reconciling limit to %d",
                default_limit,
            )
            await self.update_limit(default_limit)
            return False

        if created:
            logger.info("Registration counter initialized with limit %d", default_limit)
        return created
