# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_ledger.exceptions import NotFoundError, UnauthenticatedError
from leave_ledger.models.enums import Role
from leave_ledger.models.profile import Profile
from leave_ledger.schemas.auth import CallerContext

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession


async def get_profile(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> Profile | None:
    """Fetch a profile scoped to an organization. Returns None if not found."""
    result = await session.execute(
        select(Profile).where(
            col(Profile.id) == employee_id,
            col(Profile.organization_id) == organization_id,
        )
    )
    return result.scalar_one_or_none()


async def list_active_profiles(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_ids: list[uuid.UUID] | None = None,
) -> list[Profile]:
    """List active profiles of an organization, optionally restricted to ids.

    An empty or missing ``employee_ids`` means every active profile.
    """
    query = select(Profile).where(
        col(Profile.organization_id) == organization_id,
        col(Profile.is_active).is_(True),
    )
    if employee_ids:
        query = query.where(col(Profile.id).in_(employee_ids))
    result = await session.execute(query.order_by(col(Profile.last_name), col(Profile.first_name)))
    return list(result.scalars().all())


async def resolve_caller(session: AsyncSession, user_id: uuid.UUID | None) -> CallerContext:
    """Resolve an authenticated user id to its organization and role.

    Organization and role always come from the stored profile, never from the
    request itself.
    """
    if user_id is None:
        raise UnauthenticatedError("Authentication required")

    result = await session.execute(select(Profile).where(col(Profile.id) == user_id))
    profile = result.scalar_one_or_none()
    if profile is None or not profile.is_active:
        raise UnauthenticatedError("No active profile for the authenticated user")

    return CallerContext(
        employee_id=profile.id,
        organization_id=profile.organization_id,
        role=Role(profile.role),
    )


def employee_lock_query(organization_id: uuid.UUID, employee_id: uuid.UUID) -> Select[tuple[Profile]]:
    return (
        select(Profile)
        .where(
            col(Profile.id) == employee_id,
            col(Profile.organization_id) == organization_id,
        )
        .with_for_update()
    )


async def lock_employee(
    session: AsyncSession,
    organization_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> Profile:
    """Lock an employee's profile row for the rest of the transaction.

    Writers that check an employee's requests for overlaps take this lock
    first, so two concurrent submissions for the same employee run one
    after the other.
    """
    result = await session.execute(employee_lock_query(organization_id, employee_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("Employee not found")
    return profile
