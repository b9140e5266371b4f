# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import UUIDBase
from leave_ledger.models.enums import Role


class Profile(UUIDBase, table=True):
    """Employee identity and organization membership. The id is the employee id."""

    __tablename__ = "profile"

    organization_id: uuid.UUID = Field(index=True)
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    display_name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = None
    employee_code: str | None = Field(default=None, max_length=50)
    role: str = Field(default=Role.EMPLOYEE, max_length=20, sa_column_kwargs={"server_default": "employee"})
    department_id: uuid.UUID | None = None
    location_id: uuid.UUID | None = None
    is_active: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})

    @property
    def legal_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
