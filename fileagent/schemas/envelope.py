"""Response envelope shared by the status, ACL and file endpoints."""
from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel

from fileagent.core.config import settings

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Every response carries a status, a message, a result payload and the agent version."""
    status: str
    message: str
    result: Optional[T] = None
    version: str


def success(message: str, result: Any = None) -> dict:
    """Build a success envelope."""
    return {
        "status": "success",
        "message": message,
        "result": result,
        "version": settings.APP_VERSION,
    }


def error(message: str, result: Any = None) -> dict:
    """Build an error envelope."""
    return {
        "status": "error",
        "message": message,
        "result": result,
        "version": settings.APP_VERSION,
    }
