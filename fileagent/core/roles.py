"""
Role definitions for API key holders.

Roles in hierarchy (lowest to highest):
- viewer: List and download files, read ACLs, query authorization
- operator: Everything a viewer can do, plus file uploads
- admin: Full access including ACL and API key management

Roles only gate which HTTP endpoints an API key may call. Whether a subject
may touch a particular path is decided by the ACL engine.
"""
from enum import Enum
from typing import Dict, Set


class Role(str, Enum):
    """API client roles with hierarchy."""
    VIEWER = "viewer"
    OPERATOR = "operator"
    ADMIN = "admin"


# Role hierarchy (numeric levels for comparison)
ROLE_HIERARCHY: Dict[str, int] = {
    Role.VIEWER.value: 1,
    Role.OPERATOR.value: 2,
    Role.ADMIN.value: 3,
}

VALID_ROLES: Set[str] = {r.value for r in Role}


def normalize_role(role: str) -> str:
    """
    Normalize role string.

    Args:
        role: Role string, any case

    Returns:
        Normalized role string from Role enum; unknown roles become viewer
    """
    role_lower = role.lower().strip()
    if role_lower in VALID_ROLES:
        return role_lower
    return Role.VIEWER.value


def has_permission(user_role: str, required_role: str) -> bool:
    """
    Check if user role has permission for required role.

    Args:
        user_role: Client's role
        required_role: Minimum required role

    Returns:
        True if the client has sufficient permissions
    """
    user_level = ROLE_HIERARCHY.get(normalize_role(user_role), 0)
    required_level = ROLE_HIERARCHY.get(normalize_role(required_role), 0)
    return user_level >= required_level
