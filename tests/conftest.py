from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import col

from leave_ledger.config import reset_settings
from leave_ledger.db import get_session
from leave_ledger.main import app
from leave_ledger.models import LeaveBalance, Profile, Role, SQLModel
from leave_ledger.schemas.auth import CallerContext

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Fixed ids: test modules import these from tests.conftest.
ORG_ID = uuid.UUID("0a000000-0000-0000-0000-000000000001")
OTHER_ORG_ID = uuid.UUID("0a000000-0000-0000-0000-000000000002")

OWNER_ID = uuid.UUID("0e000000-0000-0000-0000-000000000001")
ADMIN_ID = uuid.UUID("0e000000-0000-0000-0000-000000000002")
MANAGER_ID = uuid.UUID("0e000000-0000-0000-0000-000000000003")
EMPLOYEE_ID = uuid.UUID("0e000000-0000-0000-0000-000000000004")
COWORKER_ID = uuid.UUID("0e000000-0000-0000-0000-000000000005")
INACTIVE_ID = uuid.UUID("0e000000-0000-0000-0000-000000000006")
OUTSIDER_ID = uuid.UUID("0e000000-0000-0000-0000-000000000007")

YEAR = 2026

# (id, organization, role, first, last, display name, employee code, active)
PEOPLE = [
    (OWNER_ID, ORG_ID, Role.OWNER, "Olivia", "Owner", None, "HQ-001", True),
    (ADMIN_ID, ORG_ID, Role.ADMIN, "Adam", "Admin", None, "HQ-002", True),
    (MANAGER_ID, ORG_ID, Role.MANAGER, "Marcus", "Manager", "Marc", "HQ-003", True),
    (EMPLOYEE_ID, ORG_ID, Role.EMPLOYEE, "Alice", "Johnson", None, "ST-101", True),
    (COWORKER_ID, ORG_ID, Role.EMPLOYEE, "Bob", "Smith", "Bobby", "ST-102", True),
    (INACTIVE_ID, ORG_ID, Role.EMPLOYEE, "Ian", "Gone", None, "ST-199", False),
    (OUTSIDER_ID, OTHER_ORG_ID, Role.OWNER, "Zed", "Elsewhere", None, "XX-001", True),
]


def headers(user_id: uuid.UUID) -> dict[str, str]:
    """Auth headers for a seeded profile."""
    return {"X-User-Id": str(user_id)}


def caller(user_id: uuid.UUID, role: Role, organization_id: uuid.UUID = ORG_ID) -> CallerContext:
    return CallerContext(employee_id=user_id, organization_id=organization_id, role=role)


async def seed_balance(
    session: AsyncSession,
    employee_id: uuid.UUID = EMPLOYEE_ID,
    leave_type: str = "vacation",
    year: int = YEAR,
    entitled_days: Decimal | int = 10,
    used_days: Decimal | int = 0,
    pending_days: Decimal | int = 0,
    organization_id: uuid.UUID = ORG_ID,
) -> None:
    """Insert a balance row and commit."""
    session.add(
        LeaveBalance(
            organization_id=organization_id,
            employee_id=employee_id,
            leave_type=leave_type,
            year=year,
            entitled_days=Decimal(entitled_days),
            used_days=Decimal(used_days),
            pending_days=Decimal(pending_days),
        )
    )
    await session.commit()


async def fetch_balance(
    session: AsyncSession,
    employee_id: uuid.UUID = EMPLOYEE_ID,
    leave_type: str = "vacation",
    year: int = YEAR,
) -> LeaveBalance | None:
    """Read a balance row fresh from the database."""
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.organization_id) == ORG_ID,
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type) == leave_type,
            col(LeaveBalance.year) == year,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@pytest.fixture(autouse=True)
def _reset_settings() -> Iterator[None]:
    """Every test starts from default settings."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test, shared by every session."""
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Session for seeding data and checking results directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def people(db_session: AsyncSession) -> None:
    """Seed profiles in two organizations."""
    for user_id, org_id, role, first, last, display, code, active in PEOPLE:
        db_session.add(
            Profile(
                id=user_id,
                organization_id=org_id,
                role=role,
                first_name=first,
                last_name=last,
                display_name=display,
                employee_code=code,
                is_active=active,
            )
        )
    await db_session.commit()


@pytest.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    people: None,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden.

    Each HTTP request gets its own session, as it would in production.
    """

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
