import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from leave_ledger.config import get_settings
from leave_ledger.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Liveness plus database reachability and the active ledger mode."""

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    database: Literal["reachable", "unreachable"]
    require_provisioned_balance: bool


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report whether the service can reach its database. Needs no caller identity."""
    settings = get_settings()
    reachable = True
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        reachable = False

    return HealthResponse(
        status="ok" if reachable else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="reachable" if reachable else "unreachable",
        require_provisioned_balance=settings.require_provisioned_balance,
    )
