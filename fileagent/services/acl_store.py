"""
Persistence of ACL rules.

``AclStore`` is the contract the authorization engine depends on.
``SqlAlchemyAclStore`` implements it on the ``acls`` table; every mutation is
committed as its own transaction so a concurrent reader never sees a
half-written rule.
"""
import logging
from typing import List, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fileagent.core.exceptions import NotFoundError, StoreUnavailableError
from fileagent.models.acl import Acl
from fileagent.schemas.acl import AclRuleFields
from fileagent.services.path_matcher import validate_pattern

logger = logging.getLogger(__name__)


class AclStore(Protocol):
    """Operations the authorization engine and the ACL endpoints need."""

    def create(self, fields: AclRuleFields, create_by: str) -> int: ...

    def get(self, acl_id: int) -> Acl: ...

    def list_all(self) -> List[Acl]: ...

    def update(self, acl_id: int, fields: AclRuleFields) -> Acl: ...

    def delete(self, acl_id: int) -> None: ...


class SqlAlchemyAclStore:
    """ACL store backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        """
        Initialize the store.

        Args:
            db: Database session, owned by the caller
        """
        self.db = db

    def create(self, fields: AclRuleFields, create_by: str) -> int:
        """
        Insert a new rule.

        Returns:
            The id assigned to the rule

        Raises:
            ValidationError: If the path is not a valid pattern
            StoreUnavailableError: If the insert could not be committed
        """
        path = validate_pattern(fields.path)
        acl = Acl(
            subject=fields.subject,
            action=fields.action,
            path=path,
            user=fields.user,
            decision=fields.decision,
            create_by=create_by,
        )
        try:
            self.db.add(acl)
            self.db.commit()
            self.db.refresh(acl)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create ACL for subject={fields.subject}: {e}", exc_info=True)
            raise StoreUnavailableError(f"Could not save ACL: {e}")

        logger.info(
            f"Created ACL: id={acl.id}, subject={acl.subject}, user={acl.user}, "
            f"action={acl.action.value}, path={acl.path}, decision={acl.decision.value}"
        )
        return acl.id

    def get(self, acl_id: int) -> Acl:
        """
        Fetch a rule by id.

        Raises:
            NotFoundError: If no rule has this id
            StoreUnavailableError: If the store could not be read
        """
        try:
            acl = self.db.get(Acl, acl_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read ACL id={acl_id}: {e}", exc_info=True)
            raise StoreUnavailableError(f"Could not read ACL {acl_id}: {e}")
        if acl is None:
            raise NotFoundError(f"ACL with id {acl_id} not found", details={"acl_id": acl_id})
        return acl

    def list_all(self) -> List[Acl]:
        """Return every stored rule, ordered by id."""
        return self._query(lambda q: q, "all ACLs")

    def list_for_subject(self, subject: str) -> List[Acl]:
        """Return the rules whose subject is exactly ``subject``."""
        return self._query(lambda q: q.filter(Acl.subject == subject), f"ACLs for subject={subject}")

    def list_for_subject_user(self, subject: str, user: str) -> List[Acl]:
        """Return the rules for an exact subject and user."""
        return self._query(
            lambda q: q.filter(Acl.subject == subject, Acl.user == user),
            f"ACLs for subject={subject}, user={user}",
        )

    def update(self, acl_id: int, fields: AclRuleFields) -> Acl:
        """
        Replace the user-supplied fields of a rule.

        ``id``, ``create_by`` and ``create_time`` are left untouched.

        Raises:
            NotFoundError: If no rule has this id
            ValidationError: If the new path is not a valid pattern
            StoreUnavailableError: If the update could not be committed
        """
        path = validate_pattern(fields.path)
        acl = self.get(acl_id)
        acl.subject = fields.subject
        acl.action = fields.action
        acl.path = path
        acl.user = fields.user
        acl.decision = fields.decision
        try:
            self.db.commit()
            self.db.refresh(acl)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update ACL id={acl_id}: {e}", exc_info=True)
            raise StoreUnavailableError(f"Could not update ACL {acl_id}: {e}")

        logger.info(f"Updated ACL: id={acl_id}")
        return acl

    def delete(self, acl_id: int) -> None:
        """
        Delete a rule by id.

        Raises:
            NotFoundError: If no rule has this id
            StoreUnavailableError: If the delete could not be committed
        """
        acl = self.get(acl_id)
        try:
            self.db.delete(acl)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete ACL id={acl_id}: {e}", exc_info=True)
            raise StoreUnavailableError(f"Could not delete ACL {acl_id}: {e}")

        logger.info(f"Deleted ACL: id={acl_id}")

    def _query(self, apply_filter, description: str) -> List[Acl]:
        try:
            return apply_filter(self.db.query(Acl)).order_by(Acl.id).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {description}: {e}", exc_info=True)
            raise StoreUnavailableError(f"Could not read ACL store: {e}")
