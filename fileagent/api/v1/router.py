"""
API v1 router.
"""
from fastapi import APIRouter

from fileagent.api.v1.endpoints import acls, api_keys, files, health, status
from fileagent.api.v1.endpoints.api_keys import auth_router

api_router = APIRouter()

# Health check endpoint (no prefix, so it's /api/v1/health)
api_router.include_router(health.router, tags=["health"])

api_router.include_router(status.router, prefix="/status", tags=["status"])
api_router.include_router(acls.router, prefix="/acls", tags=["acls"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
api_router.include_router(api_keys.router, prefix="/api-keys", tags=["api-keys"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
