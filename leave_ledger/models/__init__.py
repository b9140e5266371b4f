from sqlmodel import SQLModel

from leave_ledger.models.audit import AuditLog
from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.base import TimestampMixin, UUIDBase
from leave_ledger.models.enums import (
    AuditAction,
    AuditEntityType,
    LeaveStatus,
    LeaveType,
    ReviewDecision,
    Role,
)
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.models.profile import Profile
from leave_ledger.models.request import LeaveRequest

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "LeaveBalance",
    "LeavePolicy",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "Profile",
    "ReviewDecision",
    "Role",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
