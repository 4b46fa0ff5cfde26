"""
File endpoints: listing, download and upload under the root directory.

Every request path is confined to the root by path safety checks. When
ACL_ENFORCEMENT is enabled the ACL engine must also authorize the caller's
subject: listing and download need Read, upload needs Write. The engine sees
the logical path of the resolved target, so dot segments, repeated slashes
and symlinks inside the root are evaluated as the path actually opened.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, File, Header, Request, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from fileagent.core.auth import APIClient, require_role
from fileagent.core.config import settings
from fileagent.core.database import get_db
from fileagent.core.exceptions import AccessDeniedError
from fileagent.models.acl import AclAction, SELF_USER
from fileagent.schemas.envelope import Envelope, success
from fileagent.services.acl_store import SqlAlchemyAclStore
from fileagent.services.activity_service import ActivityAction, ResourceType, log_activity
from fileagent.services.authorization import AuthorizationEngine
from fileagent.services.file_service import FileService
from fileagent.services.path_safety import EntityKind

logger = logging.getLogger(__name__)

router = APIRouter()


def ensure_authorized(db: Session, client: APIClient, user: str, action: AclAction, path: str) -> None:
    """
    Raise AccessDeniedError unless the ACL engine authorizes the request.

    No-op when ACL_ENFORCEMENT is disabled.
    """
    if not settings.ACL_ENFORCEMENT:
        return
    engine = AuthorizationEngine(SqlAlchemyAclStore(db))
    decision = engine.explain(client.subject, user, action, path)
    if not decision.allowed:
        logger.warning(
            f"ACL denied subject={client.subject} user={user} action={action.value} path={path}: {decision.reason}"
        )
        raise AccessDeniedError(
            f"Not authorized: subject {client.subject} acting as {user} may not {action.value} {path}",
            details={"subject": client.subject, "user": user, "action": action.value, "path": path},
        )


@router.get("/list/{path:path}", response_model=Envelope[List[str]])
async def list_files(
    path: str,
    user: str = Header(SELF_USER, alias="X-Act-As-User"),
    client: APIClient = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """
    List a path under the root.

    A directory returns the names of its entries; a single file returns its
    own absolute path.
    """
    logger.debug(f"processing request to list {path!r} for subject {client.subject}")
    service = FileService()
    target = service.locate(path)
    ensure_authorized(db, client, user, AclAction.READ, service.logical_path(target))
    result = service.entries(target)
    return success("File listing retrieved successfully", result)


@router.get("/contents/{path:path}")
async def download_file(
    path: str,
    user: str = Header(SELF_USER, alias="X-Act-As-User"),
    client: APIClient = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """Download a single file. Directory download is not supported."""
    service = FileService()
    file_path = service.locate(path, EntityKind.FILE)
    ensure_authorized(db, client, user, AclAction.READ, service.logical_path(file_path))
    logger.info(f"Serving file {file_path} to subject {client.subject}")
    return FileResponse(file_path, filename=file_path.name)


@router.post("/contents/{path:path}", response_model=Envelope[str])
async def upload_file(
    path: str,
    file: UploadFile = File(...),
    user: str = Header(SELF_USER, alias="X-Act-As-User"),
    client: APIClient = Depends(require_role("operator")),
    request: Request = None,
    db: Session = Depends(get_db),
):
    """
    Upload a file into an existing directory.

    The target path must name a directory; the uploaded file keeps the
    basename of its multipart filename.
    """
    service = FileService()
    target_dir = service.locate(path, EntityKind.DIRECTORY)
    ensure_authorized(db, client, user, AclAction.WRITE, service.logical_path(target_dir))
    content = await file.read()
    file_path = service.save_into(target_dir, file.filename, content)

    log_activity(
        db=db,
        client=client,
        action=ActivityAction.FILE_UPLOAD,
        resource_type=ResourceType.FILE,
        details={"path": str(file_path), "size": len(content), "user": user},
        request=request,
    )

    return success(f"file uploaded to {str(file_path)!r} successfully.", str(file_path))
