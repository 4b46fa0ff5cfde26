"""
ACL store engine and session factory.

One SQLAlchemy session per request, handed out by the ``get_db`` dependency.
"""
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from fileagent.core.config import get_settings


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for ``url``; SQLite connections are shared across the threadpool."""
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(get_settings().sqlalchemy_database_uri, echo=get_settings().DEBUG)

SessionLocal = sessionmaker(bind=engine, autoflush=False)


class Base(DeclarativeBase):
    """Declarative base for the acls, api_keys and activity_logs tables."""


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a session that is closed once the request is done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
