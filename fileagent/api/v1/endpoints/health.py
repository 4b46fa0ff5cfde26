"""
Health check endpoint for monitoring and diagnostics.
"""
import logging
from pathlib import Path
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fileagent.core.database import get_db
from fileagent.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint that verifies:
    - the ACL store answers (SELECT 1)
    - the root directory exists

    Returns 503 if either check fails.
    """
    try:
        db.execute(text("SELECT 1")).fetchone()
    except SQLAlchemyError as e:
        logger.error(f"ACL store health check failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed"
        )

    try:
        root_dir = settings.get_root_dir()
    except ValueError as e:
        logger.error(f"Root directory health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )
    if not Path(root_dir).is_dir():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Root directory {root_dir} does not exist"
        )

    return {
        "ok": True,
        "db": True,
        "root_dir": root_dir,
        "environment": settings.APP_ENV,
        "version": settings.APP_VERSION,
    }
