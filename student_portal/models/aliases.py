# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Alias request and response models."""

from pydantic import BaseModel, Field


class AliasCreateRequest(BaseModel):
    """Request to add an alias; the domain is appended by the portal."""

    suffix: str = Field(..., min_length=1, max_length=64)


class AliasListResponse(BaseModel):
    email: str
    aliases: list[str]
