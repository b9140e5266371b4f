"""Leave balance ledger.

Balance rows hold running tallies per (organization, employee, leave type,
year). Callers lock the rows they touch with ``SELECT ... FOR UPDATE`` and
apply the deltas below inside the same transaction as the request's status
change, so both commit or roll back together.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, NamedTuple

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import col

from leave_ledger.config import get_settings
from leave_ledger.db import atomic
from leave_ledger.exceptions import NotFoundError, ValidationError
from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.enums import AuditAction, AuditEntityType, LeaveType
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.schemas.balance import BalanceListResponse, BalanceResponse, ProvisionResult
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log
from leave_ledger.services.authz import require_admin, require_owner_or_privileged
from leave_ledger.services.profile import get_profile, list_active_profiles

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.models.request import LeaveRequest
    from leave_ledger.schemas.auth import CallerContext
    from leave_ledger.schemas.balance import ProvisionBalancesPayload

logger = logging.getLogger(__name__)

_ZERO = Decimal(0)


class BalanceKey(NamedTuple):
    """Identity of a balance row."""

    organization_id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: str
    year: int


def key_for(request: LeaveRequest) -> BalanceKey:
    """Balance row a request is booked against (year of its start date)."""
    return BalanceKey(request.organization_id, request.employee_id, request.leave_type, request.ledger_year)


def build_balance_response(balance: LeaveBalance) -> BalanceResponse:
    """Map a balance model to its response schema."""
    return BalanceResponse(
        employee_id=balance.employee_id,
        leave_type=LeaveType(balance.leave_type),
        year=balance.year,
        entitled_days=balance.entitled_days,
        used_days=balance.used_days,
        pending_days=balance.pending_days,
        available_days=balance.available_days,
        updated_at=balance.updated_at,
    )


# ---------------------------------------------------------------------------
# Row access
# ---------------------------------------------------------------------------


def _key_filters(key: BalanceKey) -> list:
    return [
        col(LeaveBalance.organization_id) == key.organization_id,
        col(LeaveBalance.employee_id) == key.employee_id,
        col(LeaveBalance.leave_type) == key.leave_type,
        col(LeaveBalance.year) == key.year,
    ]


def _insert_ignoring_conflicts(session: AsyncSession):  # noqa: ANN202
    """Return the dialect's ``insert`` construct that supports ON CONFLICT DO NOTHING."""
    dialect = session.bind.dialect.name if session.bind is not None else ""
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    msg = f"Balance upserts are not supported on dialect {dialect!r}"
    raise RuntimeError(msg)


async def insert_balance_if_absent(
    session: AsyncSession,
    key: BalanceKey,
    entitled_days: Decimal = _ZERO,
) -> bool:
    """Atomically create a balance row unless one exists. Returns True if created."""
    insert = _insert_ignoring_conflicts(session)
    stmt = (
        insert(LeaveBalance.__table__)  # ty: ignore[unresolved-attribute]
        .values(
            organization_id=key.organization_id,
            employee_id=key.employee_id,
            leave_type=key.leave_type,
            year=key.year,
            entitled_days=entitled_days,
            used_days=_ZERO,
            pending_days=_ZERO,
            updated_at=datetime.now(UTC),
            version=1,
        )
        .on_conflict_do_nothing(index_elements=["organization_id", "employee_id", "leave_type", "year"])
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


async def get_balance_for_update(session: AsyncSession, key: BalanceKey) -> LeaveBalance | None:
    """Fetch a balance row with a FOR UPDATE lock. Returns None if absent."""
    result = await session.execute(
        select(LeaveBalance)
        .where(*_key_filters(key))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def ensure_balance_for_update(
    session: AsyncSession,
    key: BalanceKey,
    *,
    create_missing: bool,
) -> LeaveBalance:
    """Lock the balance row for ``key``.

    With ``create_missing`` an absent row is inserted with zero entitlement;
    otherwise a missing row is a validation failure.
    """
    balance = await get_balance_for_update(session, key)
    if balance is not None:
        return balance

    if not create_missing:
        raise ValidationError(f"No {key.leave_type} leave balance has been provisioned for {key.year}")

    if await insert_balance_if_absent(session, key):
        logger.info(
            "Created %s balance for employee %s year %d with zero entitlement",
            key.leave_type,
            key.employee_id,
            key.year,
        )
    balance = await get_balance_for_update(session, key)
    if balance is None:
        msg = f"Balance row for {key} vanished after upsert"
        raise RuntimeError(msg)
    return balance


# ---------------------------------------------------------------------------
# Deltas
# ---------------------------------------------------------------------------


def _touch(balance: LeaveBalance) -> None:
    balance.version += 1
    balance.updated_at = datetime.now(UTC)


def _subtract_pending(balance: LeaveBalance, days: Decimal) -> None:
    """Decrease pending_days, clamping at zero and logging any drift."""
    remaining = balance.pending_days - days
    if remaining < 0:
        logger.warning(
            "Pending days drift for employee %s %s %d: pending=%s, releasing=%s; clamping to 0",
            balance.employee_id,
            balance.leave_type,
            balance.year,
            balance.pending_days,
            days,
        )
        remaining = _ZERO
    balance.pending_days = remaining


def place_hold(balance: LeaveBalance, days: Decimal, *, allow_overdraft: bool = True) -> None:
    """Reserve days for a pending request."""
    if not allow_overdraft and days > balance.available_days:
        raise ValidationError(
            f"Insufficient leave balance. Available: {balance.available_days} days, requested: {days} days"
        )
    balance.pending_days += days
    _touch(balance)


def consume_hold(balance: LeaveBalance, days: Decimal) -> None:
    """Turn a pending reservation into used days on approval."""
    balance.used_days += days
    _subtract_pending(balance, days)
    _touch(balance)


def release_hold(balance: LeaveBalance, days: Decimal) -> None:
    """Drop a pending reservation on rejection or cancellation."""
    _subtract_pending(balance, days)
    _touch(balance)


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_balances(
    session: AsyncSession,
    caller: CallerContext,
    employee_id: uuid.UUID | None = None,
    year: int | None = None,
) -> BalanceListResponse:
    """All balance rows of one employee for a year, ordered by leave type."""
    target_id = employee_id or caller.employee_id
    require_owner_or_privileged(caller, target_id)

    if await get_profile(session, caller.organization_id, target_id) is None:
        raise NotFoundError("Employee not found")

    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.organization_id) == caller.organization_id,
            col(LeaveBalance.employee_id) == target_id,
            col(LeaveBalance.year) == (year or date.today().year),
        )
        .order_by(col(LeaveBalance.leave_type))
    )
    balances = list(result.scalars().all())
    return BalanceListResponse(items=[build_balance_response(b) for b in balances], total=len(balances))


# ---------------------------------------------------------------------------
# Write path: entitlement provisioning
# ---------------------------------------------------------------------------


async def set_entitlement(
    session: AsyncSession,
    caller: CallerContext,
    employee_id: uuid.UUID,
    leave_type: LeaveType,
    year: int,
    entitled_days: Decimal,
) -> BalanceResponse:
    """Create or overwrite an employee's entitlement for one leave type and year."""
    require_admin(caller)
    if entitled_days < 0:
        raise ValidationError("entitled_days must not be negative")

    async with atomic(session):
        if await get_profile(session, caller.organization_id, employee_id) is None:
            raise NotFoundError("Employee not found")

        key = BalanceKey(caller.organization_id, employee_id, leave_type.value, year)
        await insert_balance_if_absent(session, key)
        balance = await ensure_balance_for_update(session, key, create_missing=False)
        before_dict = model_to_audit_dict(balance)

        balance.entitled_days = entitled_days
        _touch(balance)
        await session.flush()

        await write_audit_log(
            session,
            organization_id=caller.organization_id,
            actor_id=caller.employee_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=f"{employee_id}:{leave_type.value}:{year}",
            action=AuditAction.UPDATE,
            before_json=before_dict,
            after_json=model_to_audit_dict(balance),
        )

    logger.info(
        "Entitlement set: employee=%s type=%s year=%d days=%s by=%s",
        employee_id,
        leave_type.value,
        year,
        entitled_days,
        caller.employee_id,
    )
    return build_balance_response(balance)


async def provision_balances(
    session: AsyncSession,
    caller: CallerContext,
    payload: ProvisionBalancesPayload,
) -> ProvisionResult:
    """Create a balance row per active employee and active policy.

    New rows start at the policy's annual allowance. Existing rows are left
    alone unless ``overwrite_existing`` is set, in which case their
    entitlement is reset to the allowance.
    """
    require_admin(caller)

    current_year = date.today().year
    year = payload.year or current_year
    if abs(year - current_year) > 1:
        raise ValidationError("Year must be within one year of the current year")

    async with atomic(session):
        policies_result = await session.execute(
            select(LeavePolicy)
            .where(
                col(LeavePolicy.organization_id) == caller.organization_id,
                col(LeavePolicy.is_active).is_(True),
            )
            .order_by(col(LeavePolicy.leave_type))
        )
        policies = list(policies_result.scalars().all())
        if not policies:
            raise ValidationError("No active leave policies found. Create policies first.")

        profiles = await list_active_profiles(session, caller.organization_id, payload.employee_ids)
        if payload.employee_ids:
            found = {p.id for p in profiles}
            invalid = sorted(str(e) for e in set(payload.employee_ids) - found)
            if invalid:
                raise ValidationError(
                    f"Employee ids are invalid or outside your organization: {', '.join(invalid)}"
                )
        if not profiles:
            raise ValidationError("No active employees found")

        outcome = ProvisionResult(year=year)
        for profile in profiles:
            for policy in policies:
                key = BalanceKey(caller.organization_id, profile.id, policy.leave_type, year)
                if await insert_balance_if_absent(session, key, policy.annual_allowance_days):
                    outcome.created += 1
                elif payload.overwrite_existing:
                    balance = await ensure_balance_for_update(session, key, create_missing=False)
                    balance.entitled_days = policy.annual_allowance_days
                    _touch(balance)
                    outcome.updated += 1
                else:
                    outcome.skipped += 1

        await session.flush()
        await write_audit_log(
            session,
            organization_id=caller.organization_id,
            actor_id=caller.employee_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=f"provision:{year}",
            action=AuditAction.PROVISION,
            after_json=outcome.model_dump(),
        )

    logger.info(
        "Provisioned balances for %d: created=%d skipped=%d updated=%d",
        year,
        outcome.created,
        outcome.skipped,
        outcome.updated,
    )
    return outcome
