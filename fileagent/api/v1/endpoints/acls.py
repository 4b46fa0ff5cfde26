"""
ACL management and authorization query endpoints.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from fileagent.core.database import get_db
from fileagent.core.auth import require_role, APIClient
from fileagent.schemas.acl import AclRuleFields, AclResponse, AuthorizationResult
from fileagent.schemas.envelope import Envelope, success
from fileagent.services.acl_store import SqlAlchemyAclStore
from fileagent.services.activity_service import log_activity, ActivityAction, ResourceType
from fileagent.services.authorization import AuthorizationEngine, build_request

logger = logging.getLogger(__name__)

router = APIRouter()


def _rule_details(fields: AclRuleFields) -> dict:
    return {
        "subject": fields.subject,
        "user": fields.user,
        "action": fields.action.value,
        "path": fields.path,
        "decision": fields.decision.value,
    }


@router.post("/", response_model=Envelope[AclResponse], status_code=status.HTTP_201_CREATED)
async def create_acl(
    fields: AclRuleFields,
    client: APIClient = Depends(require_role("admin")),
    http_request: Request = None,
    db: Session = Depends(get_db),
):
    """
    Create an ACL rule (admin only).

    The caller's subject is recorded as ``create_by``.
    """
    store = SqlAlchemyAclStore(db)
    acl_id = store.create(fields, create_by=client.subject)
    acl = store.get(acl_id)

    log_activity(
        db=db,
        client=client,
        action=ActivityAction.ACL_CREATE,
        resource_type=ResourceType.ACL,
        resource_id=acl_id,
        details=_rule_details(fields),
        request=http_request,
    )

    return success(f"ACL {acl_id} created successfully", AclResponse.model_validate(acl))


@router.get("/", response_model=Envelope[List[AclResponse]])
async def list_acls(
    client: APIClient = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """List every ACL rule."""
    acls = SqlAlchemyAclStore(db).list_all()
    return success(
        f"Retrieved {len(acls)} ACLs",
        [AclResponse.model_validate(acl) for acl in acls],
    )


@router.get("/subject/{subject}", response_model=Envelope[List[AclResponse]])
async def list_acls_for_subject(
    subject: str,
    client: APIClient = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """List the ACL rules of one subject."""
    acls = SqlAlchemyAclStore(db).list_for_subject(subject)
    return success(
        f"Retrieved {len(acls)} ACLs for subject {subject}",
        [AclResponse.model_validate(acl) for acl in acls],
    )


@router.get("/subject/{subject}/{user}", response_model=Envelope[List[AclResponse]])
async def list_acls_for_subject_user(
    subject: str,
    user: str,
    client: APIClient = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """List the ACL rules of one subject acting for one user."""
    acls = SqlAlchemyAclStore(db).list_for_subject_user(subject, user)
    return success(
        f"Retrieved {len(acls)} ACLs for subject {subject} and user {user}",
        [AclResponse.model_validate(acl) for acl in acls],
    )


@router.get("/isauthz/{subject}/{user}/{action}/{path:path}", response_model=Envelope[AuthorizationResult])
async def is_authorized(
    subject: str,
    user: str,
    action: str,
    path: str,
    client: APIClient = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """
    Check whether ``subject`` acting for ``user`` may perform ``action`` on ``path``.

    A denial is a successful query whose result has ``authorized: false``.
    """
    request = build_request(subject, user, action, path)
    decision = AuthorizationEngine(SqlAlchemyAclStore(db)).explain(
        request.subject, request.user, request.action, request.path
    )
    result = AuthorizationResult(
        subject=request.subject,
        user=request.user,
        action=request.action,
        path=request.path,
        authorized=decision.allowed,
        rule_id=decision.rule_id,
        reason=decision.reason,
    )
    return success("Authorization check completed", result)


@router.get("/{acl_id}", response_model=Envelope[AclResponse])
async def get_acl(
    acl_id: int,
    client: APIClient = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """Get a specific ACL rule by ID."""
    acl = SqlAlchemyAclStore(db).get(acl_id)
    return success(f"ACL {acl_id} retrieved successfully", AclResponse.model_validate(acl))


@router.put("/{acl_id}", response_model=Envelope[AclResponse])
async def update_acl(
    acl_id: int,
    fields: AclRuleFields,
    client: APIClient = Depends(require_role("admin")),
    http_request: Request = None,
    db: Session = Depends(get_db),
):
    """
    Replace subject, action, path, user and decision of an ACL rule (admin only).
    """
    acl = SqlAlchemyAclStore(db).update(acl_id, fields)

    log_activity(
        db=db,
        client=client,
        action=ActivityAction.ACL_UPDATE,
        resource_type=ResourceType.ACL,
        resource_id=acl_id,
        details=_rule_details(fields),
        request=http_request,
    )

    return success(f"ACL {acl_id} updated successfully", AclResponse.model_validate(acl))


@router.delete("/{acl_id}", response_model=Envelope[dict])
async def delete_acl(
    acl_id: int,
    client: APIClient = Depends(require_role("admin")),
    request: Request = None,
    db: Session = Depends(get_db),
):
    """Delete an ACL rule (admin only)."""
    SqlAlchemyAclStore(db).delete(acl_id)

    log_activity(
        db=db,
        client=client,
        action=ActivityAction.ACL_DELETE,
        resource_type=ResourceType.ACL,
        resource_id=acl_id,
        details={},
        request=request,
    )

    return success(f"ACL {acl_id} deleted successfully")
