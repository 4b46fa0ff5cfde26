"""
Confinement of file operations to the configured root directory.

Request paths are logical paths relative to the root. ``resolve`` joins them
to the root, rejects anything that ends up outside it (``..`` segments or a
symlink pointing elsewhere), and checks that the target exists and is of the
expected kind.
"""
import enum
import logging
import os
from pathlib import Path
from typing import List, Union

from fileagent.core.exceptions import NotFoundError, OutsideRootError, WrongKindError

logger = logging.getLogger(__name__)


class EntityKind(str, enum.Enum):
    """Kind of filesystem entity an operation requires."""
    FILE = "file"
    DIRECTORY = "directory"
    ANY = "any"


def is_within(root: Path, candidate: Path) -> bool:
    return candidate == root or root in candidate.parents


def relative_logical_path(root: Union[str, Path], target: Path) -> str:
    """Logical path of a resolved target, e.g. ``/tmp/testup.txt``; the root itself is ``/``."""
    relative = target.relative_to(Path(root).resolve()).as_posix()
    if relative == ".":
        return "/"
    return "/" + relative


def resolve(root: Union[str, Path], requested_path: str, expected_kind: EntityKind = EntityKind.ANY) -> Path:
    """
    Resolve a logical request path under ``root``.

    Args:
        root: Configured root directory
        requested_path: Path relative to the root; "", "/" and "." mean the root
        expected_kind: Required kind of the target

    Returns:
        Absolute, resolved path of the target

    Raises:
        OutsideRootError: If the path escapes the root
        NotFoundError: If the target does not exist
        WrongKindError: If the target is not of ``expected_kind``
    """
    root_path = Path(root).resolve()
    relative = (requested_path or "").lstrip("/")

    # Lexical check first, so "../x" is refused even when it does not exist
    attempted = Path(os.path.normpath(root_path / relative))
    if not is_within(root_path, attempted):
        logger.warning(f"Rejected path {requested_path!r}: resolves outside root {root_path}")
        raise OutsideRootError(
            f"Invalid path; path {requested_path!r} is outside the root directory",
            details={"path": str(attempted)},
        )

    resolved = attempted.resolve()
    if not is_within(root_path, resolved):
        logger.warning(f"Rejected path {requested_path!r}: symlink target {resolved} is outside root {root_path}")
        raise OutsideRootError(
            f"Invalid path; path {requested_path!r} is outside the root directory",
            details={"path": str(attempted)},
        )

    if not resolved.exists():
        raise NotFoundError(
            f"Invalid path; path {str(attempted)!r} does not exist",
            details={"path": str(attempted)},
        )

    if expected_kind == EntityKind.DIRECTORY and not resolved.is_dir():
        raise WrongKindError(
            f"Invalid path; path {str(attempted)!r} must be a directory",
            details={"path": str(attempted), "expected": expected_kind.value},
        )
    if expected_kind == EntityKind.FILE and resolved.is_dir():
        raise WrongKindError(
            f"Invalid path; path {str(attempted)!r} is a directory; directory download is not supported",
            details={"path": str(attempted), "expected": expected_kind.value},
        )

    return resolved


def list_entries(path: Path) -> List[str]:
    """
    List a resolved path.

    A directory yields the names of its immediate entries; a file yields a
    single element, its own absolute path.
    """
    if not path.is_dir():
        return [str(path)]
    return sorted(entry.name for entry in path.iterdir())
