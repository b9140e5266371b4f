# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import DAYS_TYPE, TimestampMixin, UUIDBase


class LeavePolicy(UUIDBase, TimestampMixin, table=True):
    """Annual allowance for one leave type within an organization."""

    __tablename__ = "leave_policy"
    __table_args__ = (sa.UniqueConstraint("organization_id", "leave_type", name="uq_policy_org_leave_type"),)

    organization_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=50)
    name: str = Field(max_length=255)
    annual_allowance_days: Decimal = Field(default=Decimal(0), sa_type=DAYS_TYPE)  # ty: ignore[invalid-argument-type]
    max_carryover_days: Decimal = Field(default=Decimal(0), sa_type=DAYS_TYPE)  # ty: ignore[invalid-argument-type]
    is_active: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
