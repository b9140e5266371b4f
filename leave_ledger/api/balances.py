# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from leave_ledger.api.deps import AdminDep, CallerDep
from leave_ledger.db import SessionDep
from leave_ledger.models.enums import LeaveType
from leave_ledger.schemas.balance import (
    BalanceListResponse,
    BalancePage,
    BalanceResponse,
    ProvisionBalancesPayload,
    ProvisionResult,
    SetEntitlementPayload,
)
from leave_ledger.schemas.request import Pagination
from leave_ledger.services import ledger as ledger_service
from leave_ledger.services import query as query_service

balances_router = APIRouter(prefix="/leave/balances", tags=["balances"])


@balances_router.get("", response_model=BalanceListResponse)
async def get_balances(
    session: SessionDep,
    caller: CallerDep,
    employee_id: uuid.UUID | None = Query(default=None),
    year: int | None = Query(default=None),
) -> BalanceListResponse:
    """Get an employee's balances for a year (defaults: caller, current year)."""
    return await ledger_service.get_balances(session, caller, employee_id, year)


@balances_router.get("/all", response_model=BalancePage)
async def list_balances(
    session: SessionDep,
    caller: CallerDep,
    employee_id: uuid.UUID | None = Query(default=None),
    leave_type: LeaveType | None = Query(default=None),
    year: int | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> BalancePage:
    """List balance rows across the organization. Employees only see their own."""
    return await query_service.list_balances(
        session, caller, employee_id, leave_type, year, Pagination(page=page, page_size=page_size)
    )


@balances_router.post("/provision", response_model=ProvisionResult)
async def provision_balances(
    payload: ProvisionBalancesPayload,
    session: SessionDep,
    caller: AdminDep,
) -> ProvisionResult:
    """Provision balances from the active policies (admin only)."""
    return await ledger_service.provision_balances(session, caller, payload)


@balances_router.put("/{employee_id}/{leave_type}/{year}", response_model=BalanceResponse)
async def set_entitlement(
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
    payload: SetEntitlementPayload,
    session: SessionDep,
    caller: AdminDep,
) -> BalanceResponse:
    """Set an employee's entitlement for a leave type and year (admin only)."""
    return await ledger_service.set_entitlement(
        session, caller, employee_id, leave_type, year, payload.entitled_days
    )
