"""
Error taxonomy for the ACL engine, the ACL store and path safety checks.

Every error carries a human readable message plus a ``details`` dict
(attempted path, rule id, offending field) that the HTTP layer copies into
the error envelope.
"""
from typing import Any, Dict, Optional


class FileAgentError(Exception):
    """Base class for request-scoped failures."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(FileAgentError):
    """Malformed request descriptor or rule field."""
    status_code = 400


class NotFoundError(FileAgentError):
    """Unknown ACL id or missing filesystem entity."""
    status_code = 404


class OutsideRootError(FileAgentError):
    """Requested path resolves outside the configured root directory."""
    status_code = 403


class WrongKindError(FileAgentError):
    """Path exists but is a file where a directory is required, or vice versa."""
    status_code = 400


class StoreUnavailableError(FileAgentError):
    """The ACL store could not be read or a write could not be committed."""
    status_code = 503


class UploadTooLargeError(ValidationError):
    """Uploaded content exceeds MAX_UPLOAD_SIZE."""
    status_code = 413


class AccessDeniedError(FileAgentError):
    """The ACL engine did not authorize a file operation."""
    status_code = 403
