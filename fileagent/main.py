"""
fileagent application: wiring of routers, middleware and error envelopes.
"""
import logging
import os
import uuid
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from fileagent.core.config import settings
from fileagent.core.database import engine, Base
from fileagent.core.exceptions import FileAgentError
from fileagent.core.logging_config import setup_logging
from fileagent.api.v1.router import api_router
from fileagent.middleware.request_logging import RequestLoggingMiddleware
from fileagent.schemas.envelope import error

# Registers the tables on Base.metadata
from fileagent.models import Acl, APIKey, ActivityLog  # noqa: F401

setup_logging()
logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """
    Upgrade the schema to head with Alembic.

    Only runs when DATABASE_URL is set; the local SQLite file is created by
    ``prepare_store`` instead. A failed upgrade is logged, startup continues
    and /api/v1/health reports the store state.
    """
    if not os.getenv("DATABASE_URL"):
        logger.info("[MIGRATION] DATABASE_URL not set, using create_all for the local database")
        return

    from alembic import command
    from alembic.config import Config

    try:
        command.upgrade(Config("alembic.ini"), "head")
    except Exception as e:
        trace_id = str(uuid.uuid4())
        logger.warning(f"[MIGRATION] [{trace_id}] Alembic upgrade failed: {e}")
        logger.debug(f"[MIGRATION] [{trace_id}] Upgrade traceback:", exc_info=True)
        return
    logger.info("[MIGRATION] Schema is at head")


def prepare_store() -> bool:
    """Create missing tables and check the ACL store; True if it answers."""
    try:
        Base.metadata.create_all(bind=engine)
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"ACL store is not available: {e}", exc_info=True)
        return False
    logger.info("ACL store ready")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup checks; the service still starts when the store or root is unavailable."""
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION} ({settings.APP_ENV})")
    run_migrations()
    prepare_store()
    try:
        logger.info(f"Root directory: {settings.get_root_dir()}")
    except ValueError as e:
        logger.error(str(e))
    if settings.ACL_ENFORCEMENT:
        logger.info("ACL enforcement is enabled for file operations")

    yield
    logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title="File Agent API",
    description="List, upload and download files under a root directory, gated by ACLs",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(FileAgentError)
async def file_agent_error_handler(request: Request, exc: FileAgentError):
    """Render request-scoped failures as error envelopes."""
    trace_id = getattr(request.state, "trace_id", None)
    logger.info(f"[{trace_id}] {type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error(exc.message, {"error": type(exc).__name__, **exc.details}),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors with trace_id."""
    trace_id = getattr(request.state, "trace_id", str(uuid.uuid4()))

    logger.error(
        f"[{trace_id}] Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True
    )

    if isinstance(exc, SQLAlchemyError):
        message = "Database error: check DATABASE_URL / migrations"
    else:
        message = str(exc) if settings.DEBUG else "Internal Server Error"

    return JSONResponse(
        status_code=500,
        content=error(message, {"error": type(exc).__name__, "trace_id": trace_id}),
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "File Agent API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """
    Liveness endpoint for load balancers.

    Returns 200 without touching the database; use /api/v1/health for readiness.
    """
    return {"status": "ok"}
