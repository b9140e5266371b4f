# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.db import atomic
from leave_ledger.exceptions import NotFoundError, ValidationError
from leave_ledger.models.enums import AuditAction, AuditEntityType, LeaveType
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.schemas.policy import PolicyListResponse, PolicyResponse
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log
from leave_ledger.services.authz import require_admin

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.auth import CallerContext
    from leave_ledger.schemas.policy import CreatePolicyPayload, UpdatePolicyPayload

logger = logging.getLogger(__name__)


def _build_policy_response(policy: LeavePolicy) -> PolicyResponse:
    return PolicyResponse(
        id=policy.id,
        organization_id=policy.organization_id,
        leave_type=LeaveType(policy.leave_type),
        name=policy.name,
        annual_allowance_days=policy.annual_allowance_days,
        max_carryover_days=policy.max_carryover_days,
        is_active=policy.is_active,
        created_at=policy.created_at,
    )


async def _get_policy_or_404(
    session: AsyncSession,
    organization_id: uuid.UUID,
    policy_id: uuid.UUID,
) -> LeavePolicy:
    """Fetch a policy by ID scoped to organization. Raises 404 if not found."""
    result = await session.execute(
        select(LeavePolicy).where(
            col(LeavePolicy.id) == policy_id,
            col(LeavePolicy.organization_id) == organization_id,
        )
    )
    policy = result.scalar_one_or_none()
    if policy is None:
        raise NotFoundError("Leave policy not found")
    return policy


async def create_policy(
    session: AsyncSession,
    caller: CallerContext,
    payload: CreatePolicyPayload,
) -> PolicyResponse:
    """Create the organization's policy for a leave type (one per type)."""
    require_admin(caller)

    policy = LeavePolicy(
        organization_id=caller.organization_id,
        leave_type=payload.leave_type.value,
        name=payload.name,
        annual_allowance_days=payload.annual_allowance_days,
        max_carryover_days=payload.max_carryover_days,
        is_active=payload.is_active,
    )
    try:
        async with atomic(session):
            session.add(policy)
            await session.flush()
            await write_audit_log(
                session,
                organization_id=caller.organization_id,
                actor_id=caller.employee_id,
                entity_type=AuditEntityType.POLICY,
                entity_id=policy.id,
                action=AuditAction.CREATE,
                after_json=model_to_audit_dict(policy),
            )
    except IntegrityError:
        raise ValidationError(f"A {payload.leave_type.value} policy already exists") from None

    logger.info("Leave policy %s created for %s", policy.id, policy.leave_type)
    await session.refresh(policy)
    return _build_policy_response(policy)


async def update_policy(
    session: AsyncSession,
    caller: CallerContext,
    policy_id: uuid.UUID,
    payload: UpdatePolicyPayload,
) -> PolicyResponse:
    """Update a policy's name, allowance, carryover cap or active flag."""
    require_admin(caller)

    async with atomic(session):
        policy = await _get_policy_or_404(session, caller.organization_id, policy_id)
        before_dict = model_to_audit_dict(policy)

        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(policy, field, value)
        await session.flush()

        await write_audit_log(
            session,
            organization_id=caller.organization_id,
            actor_id=caller.employee_id,
            entity_type=AuditEntityType.POLICY,
            entity_id=policy.id,
            action=AuditAction.UPDATE,
            before_json=before_dict,
            after_json=model_to_audit_dict(policy),
        )

    return _build_policy_response(policy)


async def list_policies(
    session: AsyncSession,
    caller: CallerContext,
    is_active: bool | None = None,
) -> PolicyListResponse:
    """List the organization's policies ordered by leave type."""
    query = select(LeavePolicy).where(col(LeavePolicy.organization_id) == caller.organization_id)
    if is_active is not None:
        query = query.where(col(LeavePolicy.is_active).is_(is_active))

    result = await session.execute(query.order_by(col(LeavePolicy.leave_type)))
    policies = list(result.scalars().all())
    return PolicyListResponse(items=[_build_policy_response(p) for p in policies], total=len(policies))


async def get_policy(
    session: AsyncSession,
    caller: CallerContext,
    policy_id: uuid.UUID,
) -> PolicyResponse:
    """Fetch one of the caller's organization policies."""
    policy = await _get_policy_or_404(session, caller.organization_id, policy_id)
    return _build_policy_response(policy)


async def delete_policy(
    session: AsyncSession,
    caller: CallerContext,
    policy_id: uuid.UUID,
) -> None:
    """Delete a policy.

    Balance rows copy the allowance when they are provisioned and keep no
    reference to the policy, so existing balances are unaffected.
    """
    require_admin(caller)

    async with atomic(session):
        policy = await _get_policy_or_404(session, caller.organization_id, policy_id)

        await write_audit_log(
            session,
            organization_id=caller.organization_id,
            actor_id=caller.employee_id,
            entity_type=AuditEntityType.POLICY,
            entity_id=policy.id,
            action=AuditAction.DELETE,
            before_json=model_to_audit_dict(policy),
        )
        await session.delete(policy)

    logger.info("Leave policy %s deleted", policy_id)
