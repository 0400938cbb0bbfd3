"""
User administration endpoints (ADMIN only)
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from staffleave.core.deps import get_db, get_request_context, require_roles
from staffleave.models.user import Role
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.schemas.user import UserCreate, UserOut, UserUpdate
from staffleave.services import user_service

router = APIRouter()


@router.post("", response_model=UserOut, status_code=201)
def create_user_endpoint(
    payload: UserCreate,
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(Role.ADMIN)),
    context: RequestContext = Depends(get_request_context),
):
    """Create a staff or student account"""
    return user_service.create_user(db, admin, payload, context)


@router.get("", response_model=List[UserOut])
def list_users_endpoint(
    role: Optional[Role] = Query(None),
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(Role.ADMIN)),
):
    """List accounts, newest first"""
    return user_service.list_users(db, admin, role=role)


@router.get("/{user_id}", response_model=UserOut)
def get_user_endpoint(
    user_id: int,
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(Role.ADMIN)),
):
    """Get one account by ID"""
    return user_service.get_user(db, admin, user_id)


@router.put("/{user_id}", response_model=UserOut)
def update_user_endpoint(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(Role.ADMIN)),
    context: RequestContext = Depends(get_request_context),
):
    """Update an account, e.g. grant PRINCIPAL or set the employment type"""
    return user_service.update_user(db, admin, user_id, payload, context)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_user_endpoint(
    user_id: int,
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(Role.ADMIN)),
    context: RequestContext = Depends(get_request_context),
):
    """
    Deactivate an account (ADMIN-only)

    Returns 204 No Content. The account and its leave history are kept;
    it can no longer log in.
    """
    user_service.deactivate_user(db, admin, user_id, context)
    return None
