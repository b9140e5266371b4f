# ruff: noqa: TC003
"""Leave request state machine.

``pending`` is the only non-terminal state. Every transition out of it is a
compare-and-swap on the stored status, applied in one transaction with the
matching ledger delta, so two concurrent reviewers can never both win.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update
from sqlmodel import col

from leave_ledger.config import get_settings
from leave_ledger.db import atomic
from leave_ledger.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from leave_ledger.models.enums import (
    AuditAction,
    AuditEntityType,
    LeaveStatus,
    LeaveType,
    ReviewDecision,
)
from leave_ledger.models.request import LeaveRequest
from leave_ledger.schemas.request import LeaveRequestResponse
from leave_ledger.services import ledger
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log
from leave_ledger.services.authz import require_owner_or_privileged, require_privileged
from leave_ledger.services.duration import HALF_DAY, calculate_total_days
from leave_ledger.services.profile import lock_employee

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.models.balance import LeaveBalance
    from leave_ledger.schemas.auth import CallerContext
    from leave_ledger.schemas.request import SubmitLeavePayload, UpdateLeavePayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_request_response(request: LeaveRequest) -> LeaveRequestResponse:
    """Map a request model to its response schema."""
    return LeaveRequestResponse(
        id=request.id,
        organization_id=request.organization_id,
        employee_id=request.employee_id,
        leave_type=LeaveType(request.leave_type),
        start_date=request.start_date,
        end_date=request.end_date,
        total_days=request.total_days,
        reason=request.reason,
        status=LeaveStatus(request.status),
        reviewed_by=request.reviewed_by,
        reviewed_at=request.reviewed_at,
        review_comment=request.review_comment,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


async def _get_request_or_404(
    session: AsyncSession,
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
) -> LeaveRequest:
    """Fetch a request by ID scoped to organization. Raises 404 if not found."""
    result = await session.execute(
        select(LeaveRequest)
        .where(
            col(LeaveRequest.id) == request_id,
            col(LeaveRequest.organization_id) == organization_id,
        )
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Leave request not found")
    return request


def _ensure_pending(request: LeaveRequest, action: str) -> None:
    if request.status != LeaveStatus.PENDING.value:
        raise InvalidTransitionError(f"Cannot {action} a request that is {request.status}; only pending requests")


async def _check_overlap(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_request_id: uuid.UUID | None = None,
) -> None:
    """Raise if a pending or approved request of the employee overlaps the range.

    Inclusive ranges overlap when existing.start <= new.end AND existing.end >= new.start.
    """
    query = select(LeaveRequest.id).where(
        col(LeaveRequest.organization_id) == organization_id,
        col(LeaveRequest.employee_id) == employee_id,
        col(LeaveRequest.status).in_([LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value]),
        col(LeaveRequest.start_date) <= end_date,
        col(LeaveRequest.end_date) >= start_date,
    )
    if exclude_request_id is not None:
        query = query.where(col(LeaveRequest.id) != exclude_request_id)

    result = await session.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        raise ValidationError("Date range conflicts with an existing pending or approved leave request")


async def _transition(
    session: AsyncSession,
    request: LeaveRequest,
    values: dict[str, Any],
) -> None:
    """Apply ``values`` only if the stored status is still pending.

    Raises ConflictError when another writer moved the request first.
    """
    result = await session.execute(
        update(LeaveRequest)
        .where(
            col(LeaveRequest.id) == request.id,
            col(LeaveRequest.status) == LeaveStatus.PENDING.value,
        )
        .values(**values, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Leave request was modified concurrently and is no longer pending")
    await session.refresh(request)


async def _lock_in_order(
    session: AsyncSession,
    keys: list[ledger.BalanceKey],
    *,
    create_missing: bool,
) -> dict[ledger.BalanceKey, LeaveBalance]:
    """Lock several balance rows in a stable order to avoid lock-order deadlocks."""
    locked: dict[ledger.BalanceKey, LeaveBalance] = {}
    for key in sorted(set(keys), key=lambda k: (str(k.employee_id), k.leave_type, k.year)):
        locked[key] = await ledger.ensure_balance_for_update(session, key, create_missing=create_missing)
    return locked


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def submit_request(
    session: AsyncSession,
    caller: CallerContext,
    payload: SubmitLeavePayload,
) -> LeaveRequestResponse:
    """Submit a leave request and reserve its days in the ledger.

    Flow:
    1. Caller must be the employee named on the request
    2. Compute total_days from the inclusive date range
    3. Lock the employee, then reject overlaps with pending/approved requests
    4. Lock (or lazily create) the balance row for the start date's year
    5. Create the request (pending) and add the pending hold
    6. Audit and commit
    """
    settings = get_settings()
    employee_id = payload.employee_id or caller.employee_id
    if employee_id != caller.employee_id:
        raise ForbiddenError("Leave can only be requested for yourself")

    total_days = calculate_total_days(payload.start_date, payload.end_date, half_day=payload.half_day)

    async with atomic(session):
        await lock_employee(session, caller.organization_id, employee_id)
        await _check_overlap(session, caller.organization_id, employee_id, payload.start_date, payload.end_date)

        leave_request = LeaveRequest(
            organization_id=caller.organization_id,
            employee_id=employee_id,
            leave_type=payload.leave_type.value,
            start_date=payload.start_date,
            end_date=payload.end_date,
            total_days=total_days,
            reason=payload.reason,
            status=LeaveStatus.PENDING.value,
        )

        balance = await ledger.ensure_balance_for_update(
            session,
            ledger.key_for(leave_request),
            create_missing=not settings.require_provisioned_balance,
        )
        ledger.place_hold(balance, total_days, allow_overdraft=settings.allow_overdraft)

        session.add(leave_request)
        await session.flush()

        await write_audit_log(
            session,
            organization_id=caller.organization_id,
            actor_id=caller.employee_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.SUBMIT,
            after_json=model_to_audit_dict(leave_request),
        )

    logger.info(
        "Leave request %s submitted: employee=%s type=%s days=%s",
        leave_request.id,
        employee_id,
        leave_request.leave_type,
        total_days,
    )
    await session.refresh(leave_request)
    return build_request_response(leave_request)


async def review_request(
    session: AsyncSession,
    caller: CallerContext,
    request_id: uuid.UUID,
    decision: ReviewDecision,
    comment: str | None = None,
) -> LeaveRequestResponse:
    """Approve or reject a pending request (privileged callers only).

    Approval moves the request's days from pending to used. Rejection only
    releases the pending hold.
    """
    require_privileged(caller)
    settings = get_settings()
    approving = decision == ReviewDecision.APPROVE
    action = "approve" if approving else "reject"

    async with atomic(session):
        leave_request = await _get_request_or_404(session, caller.organization_id, request_id)
        _ensure_pending(leave_request, action)
        before_dict = model_to_audit_dict(leave_request)
        key = ledger.key_for(leave_request)

        if approving:
            balance: LeaveBalance | None = await ledger.ensure_balance_for_update(
                session, key, create_missing=not settings.require_provisioned_balance
            )
        else:
            balance = await ledger.get_balance_for_update(session, key)

        await _transition(
            session,
            leave_request,
            {
                "status": LeaveStatus.APPROVED.value if approving else LeaveStatus.REJECTED.value,
                "reviewed_by": caller.employee_id,
                "reviewed_at": datetime.now(UTC),
                "review_comment": comment,
            },
        )

        if balance is None:
            logger.warning("No balance row to release for rejected request %s (%s)", leave_request.id, key)
        elif approving:
            ledger.consume_hold(balance, leave_request.total_days)
        else:
            ledger.release_hold(balance, leave_request.total_days)
        await session.flush()

        await write_audit_log(
            session,
            organization_id=caller.organization_id,
            actor_id=caller.employee_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.APPROVE if approving else AuditAction.REJECT,
            before_json=before_dict,
            after_json=model_to_audit_dict(leave_request),
        )

    logger.info("Leave request %s %sd by %s", leave_request.id, action, caller.employee_id)
    return build_request_response(leave_request)


async def approve_request(
    session: AsyncSession,
    caller: CallerContext,
    request_id: uuid.UUID,
    comment: str | None = None,
) -> LeaveRequestResponse:
    return await review_request(session, caller, request_id, ReviewDecision.APPROVE, comment)


async def reject_request(
    session: AsyncSession,
    caller: CallerContext,
    request_id: uuid.UUID,
    comment: str | None = None,
) -> LeaveRequestResponse:
    return await review_request(session, caller, request_id, ReviewDecision.REJECT, comment)


async def cancel_request(
    session: AsyncSession,
    caller: CallerContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Cancel a pending request and release its hold.

    The employee who submitted the request or a privileged caller can cancel.
    Reviewer fields stay empty.
    """
    async with atomic(session):
        leave_request = await _get_request_or_404(session, caller.organization_id, request_id)
        require_owner_or_privileged(caller, leave_request.employee_id)
        _ensure_pending(leave_request, "cancel")
        before_dict = model_to_audit_dict(leave_request)
        key = ledger.key_for(leave_request)

        balance = await ledger.get_balance_for_update(session, key)
        await _transition(session, leave_request, {"status": LeaveStatus.CANCELLED.value})

        if balance is None:
            logger.warning("No balance row to release for cancelled request %s (%s)", leave_request.id, key)
        else:
            ledger.release_hold(balance, leave_request.total_days)
        await session.flush()

        await write_audit_log(
            session,
            organization_id=caller.organization_id,
            actor_id=caller.employee_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.CANCEL,
            before_json=before_dict,
            after_json=model_to_audit_dict(leave_request),
        )

    logger.info("Leave request %s cancelled by %s", leave_request.id, caller.employee_id)
    return build_request_response(leave_request)


async def update_request(
    session: AsyncSession,
    caller: CallerContext,
    request_id: uuid.UUID,
    payload: UpdateLeavePayload,
) -> LeaveRequestResponse:
    """Edit a pending request's dates, type or reason (owner only).

    The pending hold moves with the request: the old amount is released from
    the old balance row and the new amount is placed on the new one.
    """
    settings = get_settings()

    async with atomic(session):
        leave_request = await _get_request_or_404(session, caller.organization_id, request_id)
        if leave_request.employee_id != caller.employee_id:
            raise ForbiddenError("Only the requesting employee can edit a leave request")
        _ensure_pending(leave_request, "edit")
        await lock_employee(session, caller.organization_id, leave_request.employee_id)
        before_dict = model_to_audit_dict(leave_request)

        start_date = payload.start_date or leave_request.start_date
        end_date = payload.end_date or leave_request.end_date
        leave_type = payload.leave_type.value if payload.leave_type else leave_request.leave_type
        if payload.half_day is not None:
            half_day = payload.half_day
        else:
            half_day = start_date == end_date and leave_request.total_days == HALF_DAY
        total_days = calculate_total_days(start_date, end_date, half_day=half_day)

        await _check_overlap(
            session,
            caller.organization_id,
            leave_request.employee_id,
            start_date,
            end_date,
            exclude_request_id=leave_request.id,
        )

        old_key = ledger.key_for(leave_request)
        new_key = ledger.BalanceKey(caller.organization_id, leave_request.employee_id, leave_type, start_date.year)
        balances = await _lock_in_order(
            session,
            [old_key, new_key],
            create_missing=not settings.require_provisioned_balance,
        )
        old_days = leave_request.total_days

        values: dict[str, Any] = {
            "leave_type": leave_type,
            "start_date": start_date,
            "end_date": end_date,
            "total_days": total_days,
        }
        if "reason" in payload.model_fields_set:
            values["reason"] = payload.reason
        await _transition(session, leave_request, values)

        ledger.release_hold(balances[old_key], old_days)
        ledger.place_hold(balances[new_key], total_days, allow_overdraft=settings.allow_overdraft)
        await session.flush()

        await write_audit_log(
            session,
            organization_id=caller.organization_id,
            actor_id=caller.employee_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.UPDATE,
            before_json=before_dict,
            after_json=model_to_audit_dict(leave_request),
        )

    logger.info("Leave request %s updated: days %s -> %s", leave_request.id, old_days, total_days)
    return build_request_response(leave_request)


async def get_request(
    session: AsyncSession,
    caller: CallerContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Get a single request. Employees can only see their own."""
    leave_request = await _get_request_or_404(session, caller.organization_id, request_id)
    require_owner_or_privileged(caller, leave_request.employee_id)
    return build_request_response(leave_request)

