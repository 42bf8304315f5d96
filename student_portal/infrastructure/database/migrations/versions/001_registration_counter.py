# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Create registration counter table.

Revision ID: 001_registration_counter
Revises:
Create Date: 2025-04-12

This migration adds the singleton counter row storage:
- registration_counter: provisioned-account count and registration limit
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_registration_counter"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create registration_counter table."""
    op.create_table(
        "registration_counter",
        sa.Column("id", sa.Integer, primary_key=True, server_default=sa.text("1")),
        sa.Column("count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column(
            "registration_limit",
            sa.Integer,
            nullable=False,
            server_default=sa.text("200"),
        ),
        sa.Column(
            "last_updated",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint("id = 1", name="ck_registration_counter_singleton"),
        sa.CheckConstraint("count >= 0", name="ck_registration_counter_count"),
        sa.CheckConstraint(
            "registration_limit >= 0", name="ck_registration_counter_limit"
        ),
    )


def downgrade() -> None:
    """Drop registration_counter table."""
    op.drop_table("registration_counter")
