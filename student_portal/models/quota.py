# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quota, admin and reconciliation models."""

from datetime import datetime

from pydantic import BaseModel, Field


class QuotaStatus(BaseModel):
    """Current registration quota."""

    count: int
    limit: int
    remaining: int
    accepting: bool
    last_updated: datetime | None = None


class AdminSetLimit(BaseModel):
    """Request to change the registration limit."""

    limit: int = Field(..., ge=0, strict=True)


class ReconciliationResponse(BaseModel):
    """Outcome of a counter reconciliation run."""

    counted: int
    observed: int
    drift: int
    corrected: bool
    started_at: datetime
    completed_at: datetime

