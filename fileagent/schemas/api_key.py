"""Schemas for API key management."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from fileagent.core.roles import Role, normalize_role


class _RoleNormalizer(BaseModel):
    """Maps any role spelling onto viewer/operator/admin."""

    @field_validator("role", check_fields=False)
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else normalize_role(v)


class APIKeyCreateRequest(_RoleNormalizer):
    name: str = Field(..., min_length=1, max_length=255, description="Label shown in key listings")
    subject: str = Field(..., min_length=1, max_length=255, description="Subject the key authenticates as")
    role: str = Field(Role.VIEWER.value, description="viewer, operator or admin; anything else becomes viewer")


class APIKeyUpdateRequest(_RoleNormalizer):
    """Partial update; omitted fields keep their value."""
    label: Optional[str] = Field(None, max_length=255)
    subject: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[str] = None
    is_active: Optional[bool] = None


class _APIKeyView(BaseModel):
    id: int
    name: Optional[str] = None
    subject: str
    role: str
    is_active: bool
    created_at: datetime


class APIKeyResponse(_APIKeyView):
    """Stored key without its secret."""
    last_used_at: Optional[datetime] = None
    key_masked: Optional[str] = None


class APIKeyCreateResponse(_APIKeyView):
    """Returned once on creation; the raw ``key`` cannot be retrieved again."""
    key: str


class APIKeyListResponse(BaseModel):
    items: List[APIKeyResponse]
    total: int
