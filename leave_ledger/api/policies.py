# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leave_ledger.api.deps import AdminDep, CallerDep
from leave_ledger.db import SessionDep
from leave_ledger.schemas.policy import (
    CreatePolicyPayload,
    PolicyListResponse,
    PolicyResponse,
    UpdatePolicyPayload,
)
from leave_ledger.services import policy as policy_service

router = APIRouter(prefix="/leave/policies", tags=["policies"])


@router.get("", response_model=PolicyListResponse)
async def list_policies(
    session: SessionDep,
    caller: CallerDep,
    is_active: bool | None = Query(default=None),
) -> PolicyListResponse:
    """List the organization's leave policies."""
    return await policy_service.list_policies(session, caller, is_active)


@router.post("", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_policy(
    payload: CreatePolicyPayload,
    session: SessionDep,
    caller: AdminDep,
) -> PolicyResponse:
    """Create a leave policy (admin only)."""
    return await policy_service.create_policy(session, caller, payload)


@router.patch("/{policy_id}", response_model=PolicyResponse)
async def update_policy(
    policy_id: uuid.UUID,
    payload: UpdatePolicyPayload,
    session: SessionDep,
    caller: AdminDep,
) -> PolicyResponse:
    """Update a leave policy (admin only)."""
    return await policy_service.update_policy(session, caller, policy_id, payload)


@router.get("/{policy_id}", response_model=PolicyResponse)
async def get_policy(
    policy_id: uuid.UUID,
    session: SessionDep,
    caller: CallerDep,
) -> PolicyResponse:
    """Get a single leave policy."""
    return await policy_service.get_policy(session, caller, policy_id)


@router.delete("/{policy_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_policy(
    policy_id: uuid.UUID,
    session: SessionDep,
    caller: AdminDep,
) -> None:
    """Delete a leave policy (admin only)."""
    await policy_service.delete_policy(session, caller, policy_id)
