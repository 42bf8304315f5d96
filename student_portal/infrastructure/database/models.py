# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the portal database.

The only persisted entity is the registration counter: a single row
(``id = 1``) holding the provisioned-account count and the registration
limit. All reads and writes go through
:class:`student_portal.domains.quota.counter_store.CounterStore`.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from student_portal.utils.datetime import utc_now

COUNTER_ROW_ID = 1


class Base(DeclarativeBase):
    """Declarative base for portal models."""


class RegistrationCounter(Base):
    """Singleton registration counter row.

    Attributes:
        id: Always COUNTER_ROW_ID.
        count: Number of accounts provisioned through the portal.
        registration_limit: Maximum count admitted by the quota gate.
        last_updated: Time of the last mutation.
    """

    __tablename__ = "registration_counter"
    __table_args__ = (
        CheckConstraint("id = 1", name="ck_registration_counter_singleton"),
        CheckConstraint("count >= 0", name="ck_registration_counter_count"),
        CheckConstraint(
            "registration_limit >= 0", name="ck_registration_counter_limit"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=COUNTER_ROW_ID)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    registration_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=200)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    def __repr__(self) -> str:
        return (
            f"<RegistrationCounter count={self.count} "
            f"limit={self.registration_limit}>"
        )
