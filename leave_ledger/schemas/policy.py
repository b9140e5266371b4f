# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from leave_ledger.models.enums import LeaveType


class CreatePolicyPayload(BaseModel):
    """Request body for creating a leave policy."""

    leave_type: LeaveType
    name: str = Field(min_length=1, max_length=255)
    annual_allowance_days: Decimal = Field(ge=0, max_digits=7, decimal_places=2)
    max_carryover_days: Decimal = Field(default=Decimal(0), ge=0, max_digits=7, decimal_places=2)
    is_active: bool = True


class UpdatePolicyPayload(BaseModel):
    """Request body for updating a leave policy. Omitted fields are kept."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    annual_allowance_days: Decimal | None = Field(default=None, ge=0, max_digits=7, decimal_places=2)
    max_carryover_days: Decimal | None = Field(default=None, ge=0, max_digits=7, decimal_places=2)
    is_active: bool | None = None


class PolicyResponse(BaseModel):
    """Response schema for a leave policy."""

    id: uuid.UUID
    organization_id: uuid.UUID
    leave_type: LeaveType
    name: str
    annual_allowance_days: Decimal
    max_carryover_days: Decimal
    is_active: bool
    created_at: datetime


class PolicyListResponse(BaseModel):
    items: list[PolicyResponse]
    total: int
