"""Role-based authorization gate.

Every mutation and scoped read goes through these predicates. They are pure
functions of the caller's role and id, and never touch the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from leave_ledger.exceptions import ForbiddenError
from leave_ledger.models.enums import Role

if TYPE_CHECKING:
    import uuid

    from leave_ledger.schemas.auth import CallerContext

PRIVILEGED_ROLES: frozenset[Role] = frozenset({Role.OWNER, Role.ADMIN, Role.MANAGER})
ADMIN_ROLES: frozenset[Role] = frozenset({Role.OWNER, Role.ADMIN})


def is_privileged(role: Role | str) -> bool:
    """Owners, admins and managers may review requests and see organization-wide data."""
    return Role(role) in PRIVILEGED_ROLES


def is_admin(role: Role | str) -> bool:
    """Owners and admins may manage policies and entitlements."""
    return Role(role) in ADMIN_ROLES


def can_access(caller: CallerContext, owner_id: uuid.UUID) -> bool:
    """Whether the caller may see or act on a resource owned by ``owner_id``."""
    return caller.employee_id == owner_id or is_privileged(caller.role)


def require_privileged(caller: CallerContext) -> CallerContext:
    if not is_privileged(caller.role):
        raise ForbiddenError("Manager, admin or owner role required")
    return caller


def require_admin(caller: CallerContext) -> CallerContext:
    if not is_admin(caller.role):
        raise ForbiddenError("Admin or owner role required")
    return caller


def require_owner_or_privileged(caller: CallerContext, owner_id: uuid.UUID) -> CallerContext:
    if not can_access(caller, owner_id):
        raise ForbiddenError("Not authorized to access another employee's leave")
    return caller
