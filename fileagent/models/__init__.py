"""Database models."""
from fileagent.models.acl import Acl, AclAction, AclDecision
from fileagent.models.api_key import APIKey
from fileagent.models.activity_log import ActivityLog

__all__ = [
    "Acl",
    "AclAction",
    "AclDecision",
    "APIKey",
    "ActivityLog",
]
