"""Scoped, sorted and paginated read views over requests and balances."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.enums import LeaveStatus, LeaveType
from leave_ledger.models.profile import Profile
from leave_ledger.models.request import LeaveRequest
from leave_ledger.schemas.balance import BalancePage
from leave_ledger.schemas.request import (
    LeaveRequestPage,
    LeaveRequestRow,
    Pagination,
    RequestFilters,
    RequestSort,
    RequestSortField,
)
from leave_ledger.services.authz import is_privileged
from leave_ledger.services.ledger import build_balance_response

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.auth import CallerContext

_LEGAL_NAME = col(Profile.first_name) + " " + col(Profile.last_name)
# Blank display names fall back to the legal name, as in the row projection.
_DISPLAY_NAME = func.coalesce(func.nullif(col(Profile.display_name), ""), _LEGAL_NAME)

_SORT_COLUMNS: dict[RequestSortField, Any] = {
    RequestSortField.DISPLAY_NAME: _DISPLAY_NAME,
    RequestSortField.LEGAL_NAME: _LEGAL_NAME,
    RequestSortField.EMPLOYEE_CODE: col(Profile.employee_code),
    RequestSortField.LEAVE_TYPE: col(LeaveRequest.leave_type),
    RequestSortField.START_DATE: col(LeaveRequest.start_date),
    RequestSortField.END_DATE: col(LeaveRequest.end_date),
    RequestSortField.TOTAL_DAYS: col(LeaveRequest.total_days),
    RequestSortField.STATUS: col(LeaveRequest.status),
    RequestSortField.CREATED_AT: col(LeaveRequest.created_at),
}


def scoped_employee_id(caller: CallerContext, requested: uuid.UUID | None) -> uuid.UUID | None:
    """Employee filter actually applied for the caller.

    Non-privileged callers always see only their own rows, whatever they asked for.
    """
    if not is_privileged(caller.role):
        return caller.employee_id
    return requested


def _total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0


async def list_requests(
    session: AsyncSession,
    caller: CallerContext,
    filters: RequestFilters | None = None,
    sort: RequestSort | None = None,
    pagination: Pagination | None = None,
) -> LeaveRequestPage:
    """List requests of the caller's organization joined with employee details."""
    filters = filters or RequestFilters()
    sort = sort or RequestSort()
    pagination = pagination or Pagination()

    conditions = [col(LeaveRequest.organization_id) == caller.organization_id]

    employee_id = scoped_employee_id(caller, filters.employee_id)
    if employee_id is not None:
        conditions.append(col(LeaveRequest.employee_id) == employee_id)
    if filters.leave_type is not None:
        conditions.append(col(LeaveRequest.leave_type) == filters.leave_type.value)
    if filters.status is not None:
        conditions.append(col(LeaveRequest.status) == filters.status.value)
    # Date range filters select requests overlapping the window.
    if filters.date_from is not None:
        conditions.append(col(LeaveRequest.end_date) >= filters.date_from)
    if filters.date_to is not None:
        conditions.append(col(LeaveRequest.start_date) <= filters.date_to)

    joined = select(LeaveRequest, Profile).join(
        Profile,
        (col(Profile.id) == col(LeaveRequest.employee_id))
        & (col(Profile.organization_id) == col(LeaveRequest.organization_id)),
    )

    count_result = await session.execute(
        select(func.count())
        .select_from(LeaveRequest)
        .join(
            Profile,
            (col(Profile.id) == col(LeaveRequest.employee_id))
            & (col(Profile.organization_id) == col(LeaveRequest.organization_id)),
        )
        .where(*conditions)
    )
    total = count_result.scalar_one()

    sort_column = _SORT_COLUMNS[sort.field]
    ordering = sort_column.asc() if sort.order == "asc" else sort_column.desc()

    result = await session.execute(
        joined.where(*conditions)
        .order_by(ordering, col(LeaveRequest.id))
        .offset(pagination.offset)
        .limit(pagination.page_size)
    )

    rows = [
        LeaveRequestRow(
            id=request.id,
            employee_id=request.employee_id,
            employee_code=profile.employee_code,
            display_name=profile.display_name or profile.legal_name,
            legal_name=profile.legal_name,
            avatar_url=profile.avatar_url,
            leave_type=LeaveType(request.leave_type),
            start_date=request.start_date,
            end_date=request.end_date,
            total_days=request.total_days,
            reason=request.reason,
            status=LeaveStatus(request.status),
            review_comment=request.review_comment,
            reviewed_by=request.reviewed_by,
            reviewed_at=request.reviewed_at,
            created_at=request.created_at,
        )
        for request, profile in result.all()
    ]

    return LeaveRequestPage(
        rows=rows,
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        total_pages=_total_pages(total, pagination.page_size),
    )


async def list_balances(
    session: AsyncSession,
    caller: CallerContext,
    employee_id: uuid.UUID | None = None,
    leave_type: LeaveType | None = None,
    year: int | None = None,
    pagination: Pagination | None = None,
) -> BalancePage:
    """List balance rows of the caller's organization, ordered by employee, year and type."""
    pagination = pagination or Pagination()

    conditions = [col(LeaveBalance.organization_id) == caller.organization_id]
    scoped_id = scoped_employee_id(caller, employee_id)
    if scoped_id is not None:
        conditions.append(col(LeaveBalance.employee_id) == scoped_id)
    if leave_type is not None:
        conditions.append(col(LeaveBalance.leave_type) == leave_type.value)
    if year is not None:
        conditions.append(col(LeaveBalance.year) == year)

    count_result = await session.execute(select(func.count()).select_from(LeaveBalance).where(*conditions))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveBalance)
        .where(*conditions)
        .order_by(
            col(LeaveBalance.employee_id),
            col(LeaveBalance.year).desc(),
            col(LeaveBalance.leave_type),
        )
        .offset(pagination.offset)
        .limit(pagination.page_size)
    )
    balances = list(result.scalars().all())

    return BalancePage(
        rows=[build_balance_response(b) for b in balances],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        total_pages=_total_pages(total, pagination.page_size),
    )
