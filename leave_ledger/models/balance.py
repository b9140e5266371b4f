# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from leave_ledger.models.base import DAYS_TYPE, utc_now


class LeaveBalance(SQLModel, table=True):
    """Running day tallies per (organization, employee, leave type, year)."""

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.PrimaryKeyConstraint("organization_id", "employee_id", "leave_type", "year"),
        sa.CheckConstraint(
            "entitled_days >= 0 AND used_days >= 0 AND pending_days >= 0",
            name="ck_leave_balance_non_negative",
        ),
    )

    organization_id: uuid.UUID
    employee_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=50)
    year: int
    entitled_days: Decimal = Field(
        default=Decimal(0),
        sa_type=DAYS_TYPE,  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": "0"},
    )
    used_days: Decimal = Field(
        default=Decimal(0),
        sa_type=DAYS_TYPE,  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": "0"},
    )
    pending_days: Decimal = Field(
        default=Decimal(0),
        sa_type=DAYS_TYPE,  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": "0"},
    )
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})

    @property
    def available_days(self) -> Decimal:
        return self.entitled_days - self.used_days - self.pending_days
