"""
API key authentication and RBAC for protected endpoints.

Authentication only establishes *who* is calling (the subject) and which
endpoints the key may reach (its role). Path-level decisions belong to the
ACL engine.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import HTTPException, status, Security, Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from fileagent.core.config import settings
from fileagent.core.database import get_db
from fileagent.core.roles import Role, normalize_role, has_permission
from fileagent.models.api_key import APIKey

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


class APIClient:
    """Authenticated caller: the subject the ACL engine evaluates, plus its role."""

    def __init__(self, source: str, role: str, subject: str, api_key_id: Optional[int] = None):
        self.source = source  # "static" or "db"
        self.role = normalize_role(role)
        self.subject = subject
        self.api_key_id = api_key_id

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @classmethod
    def admin(cls) -> "APIClient":
        """The static key holder, also used when authentication is disabled."""
        return cls(source="static", role=Role.ADMIN.value, subject=settings.ADMIN_SUBJECT)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


def _find_db_key(db: Session, raw_key: str) -> Optional[APIKey]:
    from fileagent.api.v1.endpoints.api_keys import verify_api_key_hash

    for key in db.query(APIKey).filter(APIKey.is_active.is_(True)):
        if verify_api_key_hash(raw_key, key.key_hash):
            return key
    return None


def get_current_api_client(
    api_key: Optional[str] = Security(api_key_header),
    db: Session = Depends(get_db)
) -> APIClient:
    """
    Resolve the X-API-Key header to an API client.

    * API_KEY unset: authentication is disabled and every request is the admin subject
    * the static API_KEY: admin role, ADMIN_SUBJECT
    * an active database key: its own subject and role

    Raises:
        HTTPException: 401 if the key is missing or unknown
    """
    if not settings.API_KEY or not settings.API_KEY.strip():
        logger.debug("API_KEY not configured - authentication is disabled")
        return APIClient.admin()

    if not api_key:
        logger.warning("API key missing from request")
        raise _unauthorized("Missing API key")

    if api_key == settings.API_KEY:
        logger.debug("Authenticated with static API key")
        return APIClient.admin()

    db_key = _find_db_key(db, api_key)
    if db_key is None:
        logger.warning(f"Invalid API key attempted: {api_key[:4]}...")
        raise _unauthorized("Invalid API key")

    db_key.last_used_at = datetime.now(timezone.utc)
    db.commit()

    client = APIClient(source="db", role=db_key.role, subject=db_key.subject, api_key_id=db_key.id)
    logger.debug(f"Authenticated with DB API key {db_key.label or db_key.id} as {client.subject} ({client.role})")
    return client


def require_role(min_role: str = "viewer"):
    """
    Dependency factory for role-based access control.

    Args:
        min_role: Minimum required role (viewer, operator, admin)

    Returns:
        Dependency returning the client when its role is sufficient
    """
    required = normalize_role(min_role)

    def check_role(client: APIClient = Depends(get_current_api_client)) -> APIClient:
        if not has_permission(client.role, required):
            logger.warning(f"Access denied: {client.subject} has role '{client.role}', '{required}' required")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {required}",
            )
        return client

    return check_role
