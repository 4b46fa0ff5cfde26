"""ACL rule database model and the action/decision enumerations."""
import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func

from fileagent.core.database import Base
from fileagent.core.exceptions import ValidationError

# User value meaning "the subject acting as itself"
SELF_USER = "self"


class AclAction(str, enum.Enum):
    """
    Actions a rule can grant or deny.

    Actions are totally ordered, Read < Execute < Write. A rule for a higher
    action also applies to every lower action: an Allow for Write allows Read,
    and a Deny for Write denies Read.
    """
    READ = "Read"
    EXECUTE = "Execute"
    WRITE = "Write"

    @property
    def rank(self) -> int:
        return _ACTION_RANK[self]

    @staticmethod
    def covers(granted: "AclAction", requested: "AclAction") -> bool:
        """True iff ``granted`` is at least as high as ``requested``."""
        return _ACTION_RANK[granted] >= _ACTION_RANK[requested]

    @classmethod
    def parse(cls, token) -> "AclAction":
        """
        Parse an action token case-insensitively.

        Raises:
            ValidationError: If the token is not Read, Execute or Write
        """
        if isinstance(token, cls):
            return token
        if isinstance(token, str):
            for member in cls:
                if token.strip().lower() == member.value.lower():
                    return member
        raise ValidationError(
            f"Invalid action {token!r}; must be one of: {', '.join(m.value for m in cls)}",
            details={"field": "action", "value": str(token)},
        )


_ACTION_RANK = {
    AclAction.READ: 1,
    AclAction.EXECUTE: 2,
    AclAction.WRITE: 3,
}


class AclDecision(str, enum.Enum):
    """Outcome attached to a rule."""
    ALLOW = "Allow"
    DENY = "Deny"

    @classmethod
    def parse(cls, token) -> "AclDecision":
        """
        Parse a decision token case-insensitively.

        Raises:
            ValidationError: If the token is not Allow or Deny
        """
        if isinstance(token, cls):
            return token
        if isinstance(token, str):
            for member in cls:
                if token.strip().lower() == member.value.lower():
                    return member
        raise ValidationError(
            f"Invalid decision {token!r}; must be one of: {', '.join(m.value for m in cls)}",
            details={"field": "decision", "value": str(token)},
        )


class Acl(Base):
    """Access control rule for a subject acting on behalf of a user."""
    __tablename__ = "acls"

    id = Column(Integer, primary_key=True, index=True)
    subject = Column(String(255), nullable=False, index=True)  # Exact match, no wildcards
    action = Column(Enum(AclAction), nullable=False)
    path = Column(String(1024), nullable=False)  # Regex, searched within the request path
    user = Column(String(255), nullable=False, default=SELF_USER)
    decision = Column(Enum(AclDecision), nullable=False, index=True)

    # Audit fields
    create_by = Column(String(255), nullable=False)
    create_time = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Acl id={self.id} subject={self.subject!r} user={self.user!r} "
            f"action={self.action} path={self.path!r} decision={self.decision}>"
        )
