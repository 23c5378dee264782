# signup_service/api/endpoints/health.py
"""
Health check endpoint for monitoring system status.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from signup_service.db.session import get_db
from signup_service.schemas.registration import HealthStatus

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthStatus)
def health_check(db: Session = Depends(get_db)):
    """Healthy when the database answers a trivial query."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"ok": False, "error": "Database connection failed"},
        )
    return HealthStatus(ok=True, timestamp=datetime.now(timezone.utc))
