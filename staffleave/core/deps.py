"""
Dependencies and guards for FastAPI endpoints
"""
from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from staffleave.core.errors import Forbidden
from staffleave.db.session import SessionLocal
from staffleave.models.user import Role
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.services import identity_service
from staffleave.services.permission_service import can_approve_leave

# auto_error=False so a missing header becomes our 401, not FastAPI's default
security = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_request_context(request: Request) -> RequestContext:
    """Originating address (first X-Forwarded-For hop, else socket peer) and user agent"""
    forwarded = request.headers.get("x-forwarded-for")
    ip_address = forwarded.split(",")[0].strip() if forwarded else None
    if not ip_address and request.client is not None:
        ip_address = request.client.host
    return RequestContext(
        ip_address=ip_address or None,
        user_agent=request.headers.get("user-agent") or None,
    )


def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Actor:
    """Get current authenticated actor from the bearer token"""
    token = credentials.credentials if credentials else None
    return identity_service.resolve_actor(db, token)


def require_roles(*allowed_roles: Role):
    """
    Dependency factory for coarse role-based access control

    Usage:
        @router.get("/admin-only")
        async def admin_endpoint(actor: Actor = Depends(require_roles(Role.ADMIN))):
            ...
    """
    def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        return identity_service.require_role(actor, allowed_roles)
    return role_checker


def require_principal(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Allow only actors holding the PRINCIPAL capability"""
    if not can_approve_leave(actor):
        raise Forbidden("Access denied. Principal role required.")
    return actor
