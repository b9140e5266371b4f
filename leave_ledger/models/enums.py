from __future__ import annotations

import enum


class LeaveType(enum.StrEnum):
    """Category of paid or unpaid absence."""

    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    BEREAVEMENT = "bereavement"
    JURY_DUTY = "jury_duty"
    OTHER = "other"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests. Everything but PENDING is terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ReviewDecision(enum.StrEnum):
    """Outcome chosen by a reviewer."""

    APPROVE = "approve"
    REJECT = "reject"


class Role(enum.StrEnum):
    """Organization role of a profile."""

    OWNER = "owner"
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    REQUEST = "REQUEST"
    BALANCE = "BALANCE"
    POLICY = "POLICY"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    PROVISION = "PROVISION"
