"""Health check endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import StagingRecord
from ..schemas import HealthResponse, ServiceStatus

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    from ..main import app_state

    services: list[ServiceStatus] = []
    overall = "ok"

    # Database
    try:
        staged = db.query(StagingRecord).count()
        services.append(ServiceStatus(name="database", status="ok"))
    except Exception as e:
        logger.warning("Health check: DB error: %s", e)
        staged = 0
        services.append(ServiceStatus(name="database", status="degraded", detail=str(e)))
        overall = "degraded"

    # Etsy
    if app_state.get("etsy"):
        services.append(ServiceStatus(name="etsy", status="ok"))
    else:
        services.append(ServiceStatus(name="etsy", status="unavailable", detail="not configured"))

    return HealthResponse(status=overall, staged_count=staged, services=services)
