from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from leave_ledger.models import LeaveBalance, LeavePolicy, LeaveRequest, Profile, SQLModel
from leave_ledger.models.enums import LeaveStatus, Role

EXPECTED_TABLES = {
    "audit_log",
    "leave_balance",
    "leave_policy",
    "leave_request",
    "profile",
}


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_balance_primary_key_is_natural_key() -> None:
    table = SQLModel.metadata.tables["leave_balance"]
    assert [c.name for c in table.primary_key.columns] == ["organization_id", "employee_id", "leave_type", "year"]


def test_leave_request_defaults() -> None:
    request = LeaveRequest(
        organization_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        leave_type="vacation",
        start_date=date(2026, 12, 30),
        end_date=date(2027, 1, 2),
        total_days=Decimal(4),
    )
    assert request.id is not None
    assert request.status == LeaveStatus.PENDING
    assert request.reviewed_by is None
    assert request.ledger_year == 2026


def test_balance_available_days() -> None:
    balance = LeaveBalance(
        organization_id=uuid.uuid4(),
        employee_id=uuid.uuid4(),
        leave_type="sick",
        year=2026,
        entitled_days=Decimal(10),
        used_days=Decimal("2.5"),
        pending_days=Decimal(3),
    )
    assert balance.available_days == Decimal("4.5")
    assert balance.version == 1


def test_profile_names() -> None:
    profile = Profile(organization_id=uuid.uuid4(), first_name="Alice", last_name="Johnson")
    assert profile.legal_name == "Alice Johnson"
    assert profile.display_name is None
    assert profile.role == Role.EMPLOYEE
    assert profile.is_active is True


def test_policy_defaults() -> None:
    policy = LeavePolicy(organization_id=uuid.uuid4(), leave_type="vacation", name="Vacation")
    assert policy.annual_allowance_days == Decimal(0)
    assert policy.is_active is True


def test_created_at_only_on_reported_tables() -> None:
    tables = SQLModel.metadata.tables
    assert "created_at" in tables["leave_request"].columns
    assert "created_at" in tables["leave_policy"].columns
    assert "created_at" not in tables["profile"].columns
