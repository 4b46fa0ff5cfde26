"""
ACL authorization engine.

Resolves a request ``(subject, user, action, path)`` against the full rule
set in three passes:

1. any matching Deny rule -> not authorized
2. else any matching Allow rule -> authorized
3. else not authorized (default deny)

A rule matches a request when all four dimensions agree: the subject is
equal, the effective user is equal (``self`` stands for the subject), the
rule's action covers the requested one, and the rule's path pattern is found
within the request path.

The rule set is read from the injected store on every call; nothing is cached
between decisions.
"""
import logging
from typing import Iterable, NamedTuple, Optional

from fileagent.core.exceptions import ValidationError
from fileagent.models.acl import Acl, AclAction, AclDecision, SELF_USER
from fileagent.services.acl_store import AclStore
from fileagent.services.path_matcher import logical_path, matches

logger = logging.getLogger(__name__)


class AccessRequest(NamedTuple):
    """Validated request descriptor evaluated against the rule set."""
    subject: str
    user: str
    action: AclAction
    path: str


class AuthorizationDecision(NamedTuple):
    """Verdict plus the rule that produced it, if any."""
    allowed: bool
    rule_id: Optional[int]
    reason: str


def effective_user(subject: str, user: str) -> str:
    """Resolve the ``self`` sentinel to the subject."""
    return subject if user == SELF_USER else user


def build_request(subject: str, user: str, action, path: str) -> AccessRequest:
    """
    Validate raw request fields.

    Raises:
        ValidationError: On an empty field or an unknown action token
    """
    for name, value in (("subject", subject), ("user", user), ("path", path)):
        if value is None or str(value).strip() == "":
            raise ValidationError(f"Missing required field: {name}", details={"field": name})
    return AccessRequest(
        subject=subject,
        user=user,
        action=AclAction.parse(action),
        path=logical_path(path),
    )


def rule_matches(rule: Acl, request: AccessRequest) -> bool:
    """True if ``rule`` applies to ``request`` on subject, user, action and path."""
    if rule.subject != request.subject:
        return False
    if effective_user(rule.subject, rule.user) != effective_user(request.subject, request.user):
        return False
    if not AclAction.covers(AclAction(rule.action), request.action):
        return False
    return matches(rule.path, request.path)


def decide(rules: Iterable[Acl], request: AccessRequest) -> AuthorizationDecision:
    """Apply deny-first precedence to an already-loaded rule set."""
    rules = list(rules)
    for rule in rules:
        if AclDecision(rule.decision) == AclDecision.DENY and rule_matches(rule, request):
            return AuthorizationDecision(False, rule.id, f"denied by ACL {rule.id}")
    for rule in rules:
        if AclDecision(rule.decision) == AclDecision.ALLOW and rule_matches(rule, request):
            return AuthorizationDecision(True, rule.id, f"allowed by ACL {rule.id}")
    return AuthorizationDecision(False, None, "no matching ACL; denied by default")


class AuthorizationEngine:
    """Answers authorization queries against an ACL store."""

    def __init__(self, store: AclStore):
        self.store = store

    def explain(self, subject: str, user: str, action, path: str) -> AuthorizationDecision:
        """
        Evaluate a request and report which rule decided it.

        Raises:
            ValidationError: If the request fields are malformed
            StoreUnavailableError: If the rule set could not be read
        """
        request = build_request(subject, user, action, path)
        decision = decide(self.store.list_all(), request)
        logger.debug(
            f"Authorization subject={request.subject} user={request.user} "
            f"action={request.action.value} path={request.path}: {decision.reason}"
        )
        return decision

    def is_authorized(self, subject: str, user: str, action, path: str) -> bool:
        """Return the boolean verdict for a request."""
        return self.explain(subject, user, action, path).allowed
