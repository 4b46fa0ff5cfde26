"""
Audit trail of state-changing requests: ACL edits, uploads and API key changes.
"""
import logging
from typing import Any, Dict, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fastapi import Request

from fileagent.models.activity_log import ActivityLog
from fileagent.core.auth import APIClient

logger = logging.getLogger(__name__)


class ActivityAction:
    """Values stored in ``ActivityLog.action``."""
    ACL_CREATE = "acl_create"
    ACL_UPDATE = "acl_update"
    ACL_DELETE = "acl_delete"
    FILE_UPLOAD = "file_upload"
    API_KEY_CREATE = "api_key_create"
    API_KEY_UPDATE = "api_key_update"
    API_KEY_DEACTIVATE = "api_key_deactivate"


class ResourceType:
    """Values stored in ``ActivityLog.resource_type``."""
    ACL = "acl"
    FILE = "file"
    API_KEY = "api_key"


def request_origin(request: Optional[Request]) -> Tuple[Optional[str], Optional[str]]:
    """
    Client address and user agent of a request.

    The first X-Forwarded-For hop wins over the socket peer.
    """
    if request is None:
        return None, None
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        address = forwarded_for.split(",")[0].strip()
    else:
        address = request.client.host if request.client else None
    return address, request.headers.get("User-Agent")


def log_activity(
    db: Session,
    client: APIClient,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> Optional[ActivityLog]:
    """
    Record who did what to which resource.

    The entry is committed in its own transaction after the operation it
    describes. A failed write is logged and swallowed so the caller's request
    still succeeds.

    Returns:
        The stored entry, or None if it could not be written
    """
    ip_address, user_agent = request_origin(request)
    entry = ActivityLog(
        actor_id=client.api_key_id,
        actor_source=client.source,
        actor_subject=client.subject,
        actor_role=client.role,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
        ip_address=ip_address,
        user_agent=user_agent[:255] if user_agent else None,
    )

    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not record {action} by {client.subject}: {e}")
        return None

    logger.debug(f"Recorded {action} on {resource_type}:{resource_id} by {client.subject} ({client.role})")
    return entry
