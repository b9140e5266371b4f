# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from leave_ledger.db import SessionDep
from leave_ledger.exceptions import UnauthenticatedError
from leave_ledger.schemas.auth import CallerContext
from leave_ledger.services.authz import require_admin, require_privileged
from leave_ledger.services.profile import resolve_caller


async def get_caller(
    session: SessionDep,
    x_user_id: str | None = Header(default=None),
) -> CallerContext:
    """Resolve the authenticated user from the X-User-Id header to a profile."""
    if not x_user_id:
        raise UnauthenticatedError("Authentication required")
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise UnauthenticatedError("Malformed user id") from None
    return await resolve_caller(session, user_id)


CallerDep = Annotated[CallerContext, Depends(get_caller)]


async def get_privileged_caller(caller: CallerDep) -> CallerContext:
    """Require owner, admin or manager role for the request."""
    return require_privileged(caller)


PrivilegedDep = Annotated[CallerContext, Depends(get_privileged_caller)]


async def get_admin_caller(caller: CallerDep) -> CallerContext:
    """Require owner or admin role for the request."""
    return require_admin(caller)


AdminDep = Annotated[CallerContext, Depends(get_admin_caller)]
