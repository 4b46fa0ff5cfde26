"""
Tests for the ACL authorization engine, using an in-memory rule store.
"""
import pytest

from fileagent.core.exceptions import StoreUnavailableError, ValidationError
from fileagent.models.acl import AclAction, AclDecision
from fileagent.schemas.acl import AclRuleFields
from fileagent.services.authorization import AuthorizationEngine, effective_user

from conftest import InMemoryAclStore

ADMIN = "tenants@admin"


def rule(action, path, decision, subject=ADMIN, user="self"):
    return AclRuleFields(subject=subject, action=action, path=path, user=user, decision=decision)


def engine_for(*rules):
    return AuthorizationEngine(InMemoryAclStore(list(rules)))


class TestScenarios:
    """Worked examples for the engine."""

    def test_write_allow_covers_read_of_same_file(self):
        engine = engine_for(rule("Write", "/tmp/testup.txt", "Allow"))
        assert engine.is_authorized(ADMIN, "self", "Read", "tmp/testup.txt") is True

    @pytest.fixture
    def txt_and_exam_engine(self):
        return engine_for(
            rule("Write", r"/.*\.txt", "Allow"),
            rule("Read", "/exam.*", "Deny"),
        )

    def test_deny_pass_wins_over_allow(self, txt_and_exam_engine):
        assert txt_and_exam_engine.is_authorized(ADMIN, "self", "Read", "exam123.txt") is False

    def test_allow_covers_lower_action(self, txt_and_exam_engine):
        assert txt_and_exam_engine.is_authorized(ADMIN, "self", "Execute", "aa123.txt") is True

    def test_no_match_is_default_deny(self, txt_and_exam_engine):
        assert txt_and_exam_engine.is_authorized(ADMIN, "self", "Read", "test.zip") is False


class TestPrecedence:
    """Deny-first, allow-second, default-deny."""

    def test_single_matching_deny_beats_many_allows(self):
        engine = engine_for(
            rule("Write", "/data/.*", "Allow"),
            rule("Write", "/data/a.*", "Allow"),
            rule("Read", "/data/a.txt", "Allow"),
            rule("Read", "/data/a.txt", "Deny"),
        )
        assert engine.is_authorized(ADMIN, "self", "Read", "/data/a.txt") is False

    def test_rule_order_is_irrelevant(self):
        allow = rule("Write", "/data/.*", "Allow")
        deny = rule("Read", "/data/a.txt", "Deny")
        assert engine_for(allow, deny).is_authorized(ADMIN, "self", "Read", "/data/a.txt") is False
        assert engine_for(deny, allow).is_authorized(ADMIN, "self", "Read", "/data/a.txt") is False

    def test_matching_allow_without_deny_authorizes(self):
        engine = engine_for(
            rule("Read", "/data/.*", "Allow"),
            rule("Write", "/other/.*", "Deny"),
        )
        assert engine.is_authorized(ADMIN, "self", "Read", "/data/a.txt") is True

    def test_empty_rule_set_denies(self):
        assert engine_for().is_authorized(ADMIN, "self", "Read", "/anything") is False

    def test_write_deny_also_denies_lower_actions(self):
        engine = engine_for(
            rule("Write", "/.*", "Allow"),
            rule("Write", "/locked/.*", "Deny"),
        )
        for action in ("Read", "Execute", "Write"):
            assert engine.is_authorized(ADMIN, "self", action, "/locked/f") is False

    def test_read_deny_does_not_deny_higher_actions(self):
        engine = engine_for(
            rule("Write", "/.*", "Allow"),
            rule("Read", "/notes/.*", "Deny"),
        )
        assert engine.is_authorized(ADMIN, "self", "Read", "/notes/a") is False
        assert engine.is_authorized(ADMIN, "self", "Write", "/notes/a") is True

    def test_read_allow_does_not_grant_write(self):
        engine = engine_for(rule("Read", "/.*", "Allow"))
        assert engine.is_authorized(ADMIN, "self", "Write", "/a.txt") is False


class TestMatchingDimensions:
    """A rule must match subject, user, action and path."""

    def test_subject_must_match_exactly(self):
        engine = engine_for(rule("Write", "/.*", "Allow", subject="tenants@admin"))
        assert engine.is_authorized("tenants@other", "self", "Read", "/a") is False
        assert engine.is_authorized("tenants@admi", "self", "Read", "/a") is False

    def test_subject_is_not_a_pattern(self):
        engine = engine_for(rule("Write", "/.*", "Allow", subject="tenants@.*"))
        assert engine.is_authorized("tenants@admin", "self", "Read", "/a") is False

    def test_user_must_match(self):
        engine = engine_for(rule("Write", "/.*", "Allow", user="jstubbs"))
        assert engine.is_authorized(ADMIN, "jstubbs", "Read", "/a") is True
        assert engine.is_authorized(ADMIN, "someone", "Read", "/a") is False
        assert engine.is_authorized(ADMIN, "self", "Read", "/a") is False

    def test_self_rule_matches_request_naming_the_subject(self):
        engine = engine_for(rule("Write", "/.*", "Allow", user="self"))
        assert engine.is_authorized(ADMIN, "self", "Read", "/a") is True
        assert engine.is_authorized(ADMIN, ADMIN, "Read", "/a") is True

    def test_rule_naming_the_subject_matches_self_request(self):
        engine = engine_for(rule("Write", "/.*", "Allow", user=ADMIN))
        assert engine.is_authorized(ADMIN, "self", "Read", "/a") is True

    def test_path_must_match(self):
        engine = engine_for(rule("Write", "/tmp/.*", "Allow"))
        assert engine.is_authorized(ADMIN, "self", "Read", "/tmp/x/y") is True
        assert engine.is_authorized(ADMIN, "self", "Read", "/home/x") is False

    def test_deny_for_other_user_does_not_apply(self):
        engine = engine_for(
            rule("Write", "/.*", "Allow"),
            rule("Write", "/.*", "Deny", user="someone"),
        )
        assert engine.is_authorized(ADMIN, "self", "Write", "/a") is True


class TestExplain:

    def test_explain_reports_deciding_rule(self):
        store = InMemoryAclStore([
            rule("Write", "/.*", "Allow"),
            rule("Read", "/secret.*", "Deny"),
        ])
        engine = AuthorizationEngine(store)

        denied = engine.explain(ADMIN, "self", "Read", "/secret/a")
        assert denied.allowed is False
        assert denied.rule_id == 2

        allowed = engine.explain(ADMIN, "self", "Read", "/public/a")
        assert allowed.allowed is True
        assert allowed.rule_id == 1

    def test_explain_default_deny_has_no_rule(self):
        decision = engine_for().explain(ADMIN, "self", AclAction.READ, "/a")
        assert decision.allowed is False
        assert decision.rule_id is None
        assert "default" in decision.reason


class TestStoreInteraction:

    def test_every_decision_reads_current_rules(self):
        store = InMemoryAclStore()
        engine = AuthorizationEngine(store)
        assert engine.is_authorized(ADMIN, "self", "Read", "/a") is False

        acl_id = store.create(rule("Read", "/a", "Allow"), create_by=ADMIN)
        assert engine.is_authorized(ADMIN, "self", "Read", "/a") is True

        store.update(acl_id, rule("Read", "/b", "Allow"))
        assert engine.is_authorized(ADMIN, "self", "Read", "/a") is False
        assert engine.is_authorized(ADMIN, "self", "Read", "/b") is True

        store.delete(acl_id)
        assert engine.is_authorized(ADMIN, "self", "Read", "/b") is False

    def test_store_failure_propagates_instead_of_denying(self):
        class BrokenStore:
            def list_all(self):
                raise StoreUnavailableError("database is down")

        engine = AuthorizationEngine(BrokenStore())
        with pytest.raises(StoreUnavailableError):
            engine.is_authorized(ADMIN, "self", "Read", "/a")


class TestRequestValidation:

    @pytest.mark.parametrize("action", ["Delete", "", "rw"])
    def test_unknown_action_is_rejected(self, action):
        with pytest.raises(ValidationError):
            engine_for().is_authorized(ADMIN, "self", action, "/a")

    @pytest.mark.parametrize("subject,user,path,field", [
        ("", "self", "/a", "subject"),
        (ADMIN, "", "/a", "user"),
        (ADMIN, "self", "", "path"),
        (ADMIN, "self", "   ", "path"),
    ])
    def test_empty_fields_are_rejected(self, subject, user, path, field):
        with pytest.raises(ValidationError) as exc_info:
            engine_for().is_authorized(subject, user, "Read", path)
        assert exc_info.value.details["field"] == field

    def test_validation_happens_before_store_is_read(self):
        class ExplodingStore:
            def list_all(self):
                raise AssertionError("store must not be read for an invalid request")

        with pytest.raises(ValidationError):
            AuthorizationEngine(ExplodingStore()).is_authorized(ADMIN, "self", "Nope", "/a")


def test_effective_user_resolves_self():
    assert effective_user(ADMIN, "self") == ADMIN
    assert effective_user(ADMIN, "bob") == "bob"


def test_decision_enum_values():
    assert {d.value for d in AclDecision} == {"Allow", "Deny"}
