"""
Main API router
"""
from fastapi import APIRouter

from staffleave.api.v1 import (
    health,
    version,
    auth,
    leave,
    user,
    users,
    audit_logs,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(leave.router, prefix="/leave", tags=["leave"])
api_router.include_router(user.router, prefix="/user", tags=["user"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit-logs"])
