# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from leave_ledger.api.deps import CallerDep, PrivilegedDep
from leave_ledger.db import SessionDep
from leave_ledger.models.enums import LeaveStatus, LeaveType
from leave_ledger.schemas.request import (
    DecisionPayload,
    LeaveRequestPage,
    LeaveRequestResponse,
    Pagination,
    RequestFilters,
    RequestSort,
    RequestSortField,
    ReviewPayload,
    SortOrder,
    SubmitLeavePayload,
    UpdateLeavePayload,
)
from leave_ledger.services import query as query_service
from leave_ledger.services import request as request_service

requests_router = APIRouter(prefix="/leave/requests", tags=["requests"])


@requests_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: SubmitLeavePayload,
    session: SessionDep,
    caller: CallerDep,
) -> LeaveRequestResponse:
    """Submit a new leave request."""
    return await request_service.submit_request(session, caller, payload)


@requests_router.get("", response_model=LeaveRequestPage)
async def list_requests(
    session: SessionDep,
    caller: CallerDep,
    employee_id: uuid.UUID | None = Query(default=None),
    leave_type: LeaveType | None = Query(default=None),
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    sort: RequestSortField = Query(default=RequestSortField.CREATED_AT),
    order: SortOrder = Query(default="desc"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> LeaveRequestPage:
    """List leave requests. Employees only ever see their own."""
    return await query_service.list_requests(
        session,
        caller,
        RequestFilters(
            employee_id=employee_id,
            leave_type=leave_type,
            status=status_filter,
            date_from=date_from,
            date_to=date_to,
        ),
        RequestSort(field=sort, order=order),
        Pagination(page=page, page_size=page_size),
    )


@requests_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    caller: CallerDep,
) -> LeaveRequestResponse:
    """Get a single leave request."""
    return await request_service.get_request(session, caller, request_id)


@requests_router.patch("/{request_id}", response_model=LeaveRequestResponse)
async def update_request(
    request_id: uuid.UUID,
    payload: UpdateLeavePayload,
    session: SessionDep,
    caller: CallerDep,
) -> LeaveRequestResponse:
    """Edit a pending leave request (requesting employee only)."""
    return await request_service.update_request(session, caller, request_id, payload)


@requests_router.post("/{request_id}/review", response_model=LeaveRequestResponse)
async def review_request(
    request_id: uuid.UUID,
    payload: ReviewPayload,
    session: SessionDep,
    caller: PrivilegedDep,
) -> LeaveRequestResponse:
    """Approve or reject a pending leave request."""
    return await request_service.review_request(session, caller, request_id, payload.decision, payload.comment)


@requests_router.post("/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    caller: PrivilegedDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Approve a pending leave request."""
    return await request_service.approve_request(session, caller, request_id, payload.comment if payload else None)


@requests_router.post("/{request_id}/reject", response_model=LeaveRequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    caller: PrivilegedDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending leave request."""
    return await request_service.reject_request(session, caller, request_id, payload.comment if payload else None)


@requests_router.post("/{request_id}/cancel", response_model=LeaveRequestResponse)
async def cancel_request(
    request_id: uuid.UUID,
    session: SessionDep,
    caller: CallerDep,
) -> LeaveRequestResponse:
    """Cancel a pending leave request."""
    return await request_service.cancel_request(session, caller, request_id)
