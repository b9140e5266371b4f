# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from leave_ledger.models.enums import LeaveType


class BalanceResponse(BaseModel):
    """Balance for one employee, leave type and year."""

    employee_id: uuid.UUID
    leave_type: LeaveType
    year: int
    entitled_days: Decimal
    used_days: Decimal
    pending_days: Decimal
    available_days: Decimal
    updated_at: datetime | None


class BalanceListResponse(BaseModel):
    """All balances of an employee for a year."""

    items: list[BalanceResponse]
    total: int


class BalancePage(BaseModel):
    """Paginated organization-wide balance rows."""

    rows: list[BalanceResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class SetEntitlementPayload(BaseModel):
    """Request body for setting an employee's entitlement explicitly."""

    entitled_days: Decimal = Field(ge=0, multiple_of=Decimal("0.5"), max_digits=7, decimal_places=2)


class ProvisionBalancesPayload(BaseModel):
    """Request body for provisioning balances from the active policies."""

    year: int | None = Field(default=None, description="Defaults to the current year")
    employee_ids: list[uuid.UUID] | None = None
    overwrite_existing: bool = False


class ProvisionResult(BaseModel):
    """Outcome counts of a provisioning run."""

    year: int
    created: int = 0
    skipped: int = 0
    updated: int = 0
