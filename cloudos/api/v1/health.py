# cloudos/api/v1/health.py
import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cloudos.core.clock import utcnow
from cloudos.db.session import get_db

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health(request: Request, db: Session = Depends(get_db)):
    settings = request.app.state.settings
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        logger.exception("health_db_check_failed")
        database = "disconnected"
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat(),
        "service": settings.SERVICE_NAME,
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": database,
    }
