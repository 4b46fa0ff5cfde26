"""Schemas for ACL management and authorization queries."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from fileagent.core.exceptions import ValidationError
from fileagent.models.acl import AclAction, AclDecision, SELF_USER


class AclRuleFields(BaseModel):
    """User-supplied fields of an ACL rule, used for both create and update."""
    subject: str = Field(..., min_length=1, max_length=255, description="Exact subject the rule applies to")
    action: AclAction = Field(..., description="Read, Execute or Write")
    path: str = Field(..., min_length=1, max_length=1024, description="Regex searched within the request path")
    user: str = Field(SELF_USER, min_length=1, max_length=255, description="User acted on behalf of; 'self' for the subject itself")
    decision: AclDecision = Field(..., description="Allow or Deny")

    @field_validator("action", mode="before")
    @classmethod
    def parse_action(cls, v):
        """Accept action tokens in any case."""
        try:
            return AclAction.parse(v)
        except ValidationError as e:
            raise ValueError(e.message)

    @field_validator("decision", mode="before")
    @classmethod
    def parse_decision(cls, v):
        """Accept decision tokens in any case."""
        try:
            return AclDecision.parse(v)
        except ValidationError as e:
            raise ValueError(e.message)


class AclResponse(BaseModel):
    """Response schema for a stored ACL rule."""
    id: int
    subject: str
    action: AclAction
    path: str
    user: str
    decision: AclDecision
    create_by: str
    create_time: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AuthorizationResult(BaseModel):
    """Result payload of an authorization query."""
    subject: str
    user: str
    action: AclAction
    path: str
    authorized: bool
    rule_id: Optional[int] = None
    reason: str
