"""
API key management endpoints.

Each key is bound to a subject; requests made with the key are evaluated by
the ACL engine as that subject. Only a salted hash of a key is stored.
"""
import logging
import secrets
import hashlib
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fileagent.core.config import settings
from fileagent.core.database import get_db
from fileagent.core.auth import require_role, get_current_api_client, APIClient
from fileagent.models.api_key import APIKey
from fileagent.services.activity_service import log_activity, ActivityAction, ResourceType
from fileagent.schemas.api_key import (
    APIKeyCreateRequest,
    APIKeyResponse,
    APIKeyCreateResponse,
    APIKeyListResponse,
    APIKeyUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

KEY_PREFIX = "fa_"


def generate_api_key() -> str:
    """New random key, shown to the caller exactly once."""
    return f"{KEY_PREFIX}{secrets.token_urlsafe(32)}"


def hash_api_key(key: str) -> str:
    return hashlib.sha256(f"{settings.API_KEY_SALT}{key}".encode()).hexdigest()


def verify_api_key_hash(raw_key: str, key_hash: str) -> bool:
    """Constant-time comparison of a raw key against a stored hash."""
    return secrets.compare_digest(hash_api_key(raw_key), key_hash)


def _to_response(key: APIKey) -> APIKeyResponse:
    return APIKeyResponse(
        id=key.id,
        name=key.label,
        subject=key.subject,
        role=key.role,
        is_active=key.is_active,
        created_at=key.created_at,
        last_used_at=key.last_used_at,
        key_masked=f"{key.key_hash[:8]}...",
    )


def _get_key_or_404(db: Session, key_id: int) -> APIKey:
    db_key = db.get(APIKey, key_id)
    if db_key is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"API key with id {key_id} not found"
        )
    return db_key


@router.get("/", response_model=APIKeyListResponse)
async def list_api_keys(
    _client: APIClient = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    """List all API keys, newest first, with masked hashes (admin only)."""
    items = [_to_response(key) for key in db.query(APIKey).order_by(APIKey.id.desc())]
    logger.info(f"Listed {len(items)} API keys")
    return APIKeyListResponse(items=items, total=len(items))


@router.post("/", response_model=APIKeyCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_api_key(
    request: APIKeyCreateRequest,
    client: APIClient = Depends(require_role("admin")),
    http_request: Request = None,
    db: Session = Depends(get_db),
):
    """
    Create an API key bound to a subject (admin only).

    The raw key is in this response only.
    """
    new_key = generate_api_key()
    db_key = APIKey(
        key_hash=hash_api_key(new_key),
        label=request.name,
        subject=request.subject,
        role=request.role,
        is_active=True,
    )
    try:
        db.add(db_key)
        db.commit()
        db.refresh(db_key)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating API key for subject {request.subject}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create API key"
        )

    # The raw key is never logged
    logger.info(f"Created API key: id={db_key.id}, subject={db_key.subject}, role={db_key.role}")

    log_activity(
        db=db,
        client=client,
        action=ActivityAction.API_KEY_CREATE,
        resource_type=ResourceType.API_KEY,
        resource_id=db_key.id,
        details={"label": request.name, "subject": request.subject, "role": request.role},
        request=http_request,
    )

    return APIKeyCreateResponse(
        id=db_key.id,
        name=db_key.label,
        subject=db_key.subject,
        role=db_key.role,
        is_active=db_key.is_active,
        created_at=db_key.created_at,
        key=new_key,
    )


@router.patch("/{key_id}", response_model=APIKeyResponse)
async def update_api_key(
    key_id: int,
    request: APIKeyUpdateRequest,
    client: APIClient = Depends(require_role("admin")),
    http_request: Request = None,
    db: Session = Depends(get_db),
):
    """Change the label, subject, role or active flag of a key (admin only)."""
    db_key = _get_key_or_404(db, key_id)

    changes = request.model_dump(exclude_none=True)
    for field, value in changes.items():
        setattr(db_key, field, value)
    db.commit()
    db.refresh(db_key)

    logger.info(f"Updated API key {key_id}: {sorted(changes)}")

    log_activity(
        db=db,
        client=client,
        action=ActivityAction.API_KEY_UPDATE,
        resource_type=ResourceType.API_KEY,
        resource_id=key_id,
        details=changes,
        request=http_request,
    )

    return _to_response(db_key)


@router.delete("/{key_id}", status_code=status.HTTP_200_OK)
async def delete_api_key(
    key_id: int,
    client: APIClient = Depends(require_role("admin")),
    request: Request = None,
    db: Session = Depends(get_db),
):
    """
    Deactivate an API key (admin only).

    The row is kept for the audit trail; the key stops authenticating.
    """
    db_key = _get_key_or_404(db, key_id)
    db_key.is_active = False
    db.commit()

    logger.info(f"Deactivated API key {key_id} (subject {db_key.subject})")

    log_activity(
        db=db,
        client=client,
        action=ActivityAction.API_KEY_DEACTIVATE,
        resource_type=ResourceType.API_KEY,
        resource_id=key_id,
        details={},
        request=request,
    )

    return {"message": "API key deleted successfully", "id": key_id, "is_active": False}


auth_router = APIRouter()


@auth_router.get("/me")
async def get_current_user_info(
    client: APIClient = Depends(get_current_api_client),
):
    """Identity of the caller: subject, role and how it authenticated."""
    return {
        "subject": client.subject,
        "role": client.role,
        "source": client.source,
        "is_admin": client.is_admin,
        "api_key_id": client.api_key_id,
    }
