"""
Service for file operations under the root directory.
"""
import logging
import uuid
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import List, Optional

from fileagent.core.config import settings
from fileagent.core.exceptions import OutsideRootError, UploadTooLargeError, WrongKindError
from fileagent.services.path_safety import EntityKind, is_within, list_entries, relative_logical_path, resolve

logger = logging.getLogger(__name__)


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Reduce an uploaded filename to a safe basename.

    Directory components (either separator) are dropped; names that are empty
    or consist only of dots are replaced with a random UUID.
    """
    if filename:
        name = PureWindowsPath(PurePosixPath(filename).name).name
        name = name.replace("\x00", "").strip()
        if name.strip("."):
            return name
    return str(uuid.uuid4())


class FileService:
    """List, read and write files confined to a root directory."""

    def __init__(self, root_dir: Optional[str] = None):
        """
        Initialize file service.

        Args:
            root_dir: Root directory; defaults to the configured root
        """
        self.root_dir = Path(root_dir or settings.get_root_dir())

    def locate(self, path: str, kind: EntityKind = EntityKind.ANY) -> Path:
        """Resolve a request path under the root and check its kind."""
        return resolve(self.root_dir, path, kind)

    def logical_path(self, target: Path) -> str:
        """Logical path of a located target, as evaluated by the ACL engine."""
        return relative_logical_path(self.root_dir, target)

    def entries(self, target: Path) -> List[str]:
        result = list_entries(target)
        logger.debug(f"Listed {target}: {len(result)} entries")
        return result

    def list_path(self, path: str) -> List[str]:
        """Entry names of a directory, or the absolute path of a single file."""
        return self.entries(self.locate(path))

    def file_path(self, path: str) -> Path:
        """Resolve a path that must be an existing file."""
        return self.locate(path, EntityKind.FILE)

    def save_upload(self, directory: str, filename: Optional[str], content: bytes) -> Path:
        """
        Write uploaded content into an existing directory.

        Returns:
            Absolute path of the written file

        Raises:
            NotFoundError / WrongKindError / OutsideRootError: For a bad target directory
            UploadTooLargeError: If the content exceeds MAX_UPLOAD_SIZE
        """
        return self.save_into(self.locate(directory, EntityKind.DIRECTORY), filename, content)

    def save_into(self, target_dir: Path, filename: Optional[str], content: bytes) -> Path:
        """
        Write uploaded content into a located directory.

        Raises:
            UploadTooLargeError: If the content exceeds MAX_UPLOAD_SIZE
            OutsideRootError: If the file name is a symlink leading out of the root
            WrongKindError: If the file name is an existing directory
        """
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise UploadTooLargeError(
                f"File size exceeds maximum allowed size of {settings.MAX_UPLOAD_SIZE} bytes",
                details={"size": len(content), "max_size": settings.MAX_UPLOAD_SIZE},
            )
        file_path = target_dir / sanitize_filename(filename)

        # write_bytes follows symlinks, so check where the write really lands
        landing = file_path.resolve()
        if not is_within(self.root_dir.resolve(), landing):
            logger.warning(f"Rejected upload to {file_path}: symlink target {landing} is outside root")
            raise OutsideRootError(
                f"Invalid path; path {str(file_path)!r} is outside the root directory",
                details={"path": str(file_path)},
            )
        if landing.is_dir():
            raise WrongKindError(
                f"Invalid path; path {str(file_path)!r} is a directory and cannot be overwritten",
                details={"path": str(file_path), "expected": EntityKind.FILE.value},
            )

        file_path.write_bytes(content)
        logger.info(f"File uploaded to {file_path} ({len(content)} bytes)")
        return file_path
