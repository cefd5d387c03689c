"""Health check endpoint for infrastructure status."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthStatus(BaseModel):
    """Health check response."""

    status: Literal["ok", "down"]
    checks: dict[str, Literal["ok", "down"]]


def check_health(session: Session) -> HealthStatus:
    """
    Check health of core infrastructure components.

    Checks:
    - Database: Attempts to execute SELECT 1

    Returns:
        HealthStatus with overall status and individual check results
    """
    checks: dict[str, Literal["ok", "down"]] = {}

    try:
        session.execute(text("SELECT 1"))
        checks["db"] = "ok"
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        checks["db"] = "down"

    # Overall status - down if any check is down
    overall_status: Literal["ok", "down"] = (
        "ok" if all(status == "ok" for status in checks.values()) else "down"
    )

    return HealthStatus(status=overall_status, checks=checks)


@router.get("/healthz", response_model=HealthStatus)
def healthz(session: Session = Depends(get_db_session)) -> HealthStatus:
    """Health check endpoint."""
    return check_health(session)
