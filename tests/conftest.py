"""
Pytest configuration and fixtures.
"""
import pytest
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from unittest.mock import patch

from fileagent.core.database import Base, build_engine, get_db
from fileagent.core.exceptions import NotFoundError
from fileagent.main import app
from fileagent.models import Acl, APIKey, ActivityLog
from fileagent.schemas.acl import AclRuleFields
from fileagent.services.path_matcher import validate_pattern

# Use file-based SQLite for testing (more reliable than in-memory)
TEST_DATABASE_URL = "sqlite:///./test_fileagent.db"

test_engine = build_engine(TEST_DATABASE_URL)

TestingSessionLocal = sessionmaker(bind=test_engine, autoflush=False)


class InMemoryAclStore:
    """ACL store holding rules in a dict, for engine tests without a database."""

    def __init__(self, rules=None):
        self.rules = {}
        self.next_id = 1
        for rule in rules or []:
            self.create(rule, create_by="tests")

    def create(self, fields: AclRuleFields, create_by: str) -> int:
        acl = Acl(
            id=self.next_id,
            subject=fields.subject,
            action=fields.action,
            path=validate_pattern(fields.path),
            user=fields.user,
            decision=fields.decision,
            create_by=create_by,
        )
        self.rules[acl.id] = acl
        self.next_id += 1
        return acl.id

    def get(self, acl_id: int) -> Acl:
        if acl_id not in self.rules:
            raise NotFoundError(f"ACL with id {acl_id} not found", details={"acl_id": acl_id})
        return self.rules[acl_id]

    def list_all(self):
        return list(self.rules.values())

    def update(self, acl_id: int, fields: AclRuleFields) -> Acl:
        acl = self.get(acl_id)
        acl.subject = fields.subject
        acl.action = fields.action
        acl.path = validate_pattern(fields.path)
        acl.user = fields.user
        acl.decision = fields.decision
        return acl

    def delete(self, acl_id: int) -> None:
        self.get(acl_id)
        del self.rules[acl_id]


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """
    Create all tables before tests run and drop them after all tests complete.
    """
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function", autouse=True)
def clean_tables():
    """Empty every table after each test so rules never leak between tests."""
    yield
    db = TestingSessionLocal()
    try:
        db.query(ActivityLog).delete()
        db.query(Acl).delete()
        db.query(APIKey).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture(scope="function", autouse=True)
def disable_api_key():
    """Disable API key authentication for all tests."""
    with patch("fileagent.core.config.settings.API_KEY", None):
        yield


@pytest.fixture(scope="function")
def root_dir(tmp_path):
    """A populated root directory used as FILEAGENT_HOME."""
    root = tmp_path / "root"
    (root / "tmp").mkdir(parents=True)
    (root / "tmp" / "testup.txt").write_text("hello from testup")
    (root / "exam123.txt").write_text("exam")
    (root / "data.zip").write_bytes(b"PK\x03\x04")
    with patch("fileagent.core.config.settings.FILEAGENT_HOME", str(root)):
        yield root


def _override_get_db():
    """Override get_db dependency to use test database session."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client():
    """
    Create a test client with database override.

    API key authentication is disabled, so every request acts as the admin subject.
    """
    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client_with_auth():
    """
    Create a test client with API key authentication enabled.

    Sets API_KEY="test-key" for testing authentication.
    """
    app.dependency_overrides[get_db] = _override_get_db
    with patch("fileagent.core.config.settings.API_KEY", "test-key"):
        yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db_session():
    """
    Provide a database session for tests that need direct DB access.
    """
    db = TestingSessionLocal()
    try:
        yield db
        db.rollback()
    finally:
        db.close()


@pytest.fixture(scope="function")
def make_api_key(db_session):
    """Factory creating an active DB API key bound to a subject; returns the raw key."""
    from fileagent.api.v1.endpoints.api_keys import hash_api_key

    def _make(raw_key: str, subject: str, role: str = "viewer") -> str:
        db_session.add(APIKey(
            key_hash=hash_api_key(raw_key),
            label=f"{subject} key",
            subject=subject,
            role=role,
            is_active=True,
        ))
        db_session.commit()
        return raw_key

    return _make
