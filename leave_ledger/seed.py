"""Seed script for development data.

Run with:  python -m leave_ledger.seed
Creates the tables if needed, then one organization with an owner, a manager
and two employees, a policy per leave type and provisioned balances for the
current year. Re-running is a no-op for rows that already exist.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlmodel import col

from leave_ledger.db import dispose_engine, get_engine, get_session_factory
from leave_ledger.models import LeavePolicy, LeaveType, Profile, Role, SQLModel
from leave_ledger.schemas.auth import CallerContext
from leave_ledger.schemas.balance import ProvisionBalancesPayload
from leave_ledger.services.ledger import provision_balances

logger = logging.getLogger(__name__)

ORGANIZATION_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
OWNER_ID = uuid.UUID("00000000-0000-0000-0000-000000000010")

PROFILES = [
    {"id": OWNER_ID, "first_name": "Olivia", "last_name": "Owner", "role": Role.OWNER, "employee_code": "HQ-001"},
    {
        "id": uuid.UUID("00000000-0000-0000-0000-000000000011"),
        "first_name": "Marcus",
        "last_name": "Manager",
        "display_name": "Marc",
        "role": Role.MANAGER,
        "employee_code": "HQ-002",
    },
    {
        "id": uuid.UUID("00000000-0000-0000-0000-000000000012"),
        "first_name": "Alice",
        "last_name": "Johnson",
        "role": Role.EMPLOYEE,
        "employee_code": "ST-101",
    },
    {
        "id": uuid.UUID("00000000-0000-0000-0000-000000000013"),
        "first_name": "Bob",
        "last_name": "Smith",
        "role": Role.EMPLOYEE,
        "employee_code": "ST-102",
    },
]

ALLOWANCES: dict[LeaveType, Decimal] = {
    LeaveType.VACATION: Decimal(20),
    LeaveType.SICK: Decimal(10),
    LeaveType.PERSONAL: Decimal(3),
    LeaveType.BEREAVEMENT: Decimal(5),
    LeaveType.JURY_DUTY: Decimal(10),
    LeaveType.OTHER: Decimal(0),
}


async def seed() -> None:
    """Insert the demo organization, policies and balances."""
    async with get_engine().begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    factory = get_session_factory()
    async with factory() as session:
        for data in PROFILES:
            if await session.get(Profile, data["id"]) is None:
                session.add(Profile(organization_id=ORGANIZATION_ID, **data))
                logger.info("Created profile %s %s", data["first_name"], data["last_name"])
        await session.commit()

        for leave_type, allowance in ALLOWANCES.items():
            existing = await session.execute(
                select(LeavePolicy).where(
                    col(LeavePolicy.organization_id) == ORGANIZATION_ID,
                    col(LeavePolicy.leave_type) == leave_type.value,
                )
            )
            if existing.scalar_one_or_none() is None:
                session.add(
                    LeavePolicy(
                        organization_id=ORGANIZATION_ID,
                        leave_type=leave_type.value,
                        name=f"{leave_type.value.replace('_', ' ').title()} leave",
                        annual_allowance_days=allowance,
                    )
                )
        await session.commit()

        owner = CallerContext(employee_id=OWNER_ID, organization_id=ORGANIZATION_ID, role=Role.OWNER)
        result = await provision_balances(session, owner, ProvisionBalancesPayload(year=date.today().year))
        logger.info("Balances: created=%d skipped=%d", result.created, result.skipped)

    await dispose_engine()


def main() -> None:
    """Entry point for the seed script."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    asyncio.run(seed())


if __name__ == "__main__":
    main()
