"""
Readiness endpoint.
"""
import logging
from fastapi import APIRouter

from fileagent.core.config import settings
from fileagent.schemas.envelope import Envelope, success

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ready", response_model=Envelope[str])
async def ready():
    """Report that the agent is accepting requests."""
    logger.debug("processing request to GET /status/ready")
    return success(f"{settings.APP_NAME} ready.")
