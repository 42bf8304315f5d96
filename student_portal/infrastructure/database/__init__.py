# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the registration counter.

Example:
    from student_portal.infrastructure.database import init_database, get_sessionmaker

    await init_database(settings)
    sessionmaker = get_sessionmaker()
"""

from student_portal.infrastructure.database.connection import (
    DatabaseError,
    build_sessionmaker,
    close_database,
    create_schema,
    get_engine,
    get_sessionmaker,
    init_database,
)
from student_portal.infrastructure.database.models import (
    COUNTER_ROW_ID,
    Base,
    RegistrationCounter,
)

__all__ = [
    "DatabaseError",
    "build_sessionmaker",
    "close_database",
    "create_schema",
    "get_engine",
    "get_sessionmaker",
    "init_database",
    "COUNTER_ROW_ID",
    "Base",
    "RegistrationCounter",
]
