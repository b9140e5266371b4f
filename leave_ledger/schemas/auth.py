# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from leave_ledger.models.enums import Role


class CallerContext(BaseModel):
    """Resolved identity of the authenticated caller."""

    employee_id: uuid.UUID
    organization_id: uuid.UUID
    role: Role = Role.EMPLOYEE
