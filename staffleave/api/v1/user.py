"""
Self-service account endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from staffleave.core.deps import get_db, get_current_actor, get_request_context
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.schemas.user import ChangePasswordRequest, MessageResponse, UserOut
from staffleave.services import identity_service

router = APIRouter()


@router.get("/me", response_model=UserOut)
def read_me(
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """Caller's own profile (never includes the password)"""
    return identity_service.get_profile(db, current_actor)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
    context: RequestContext = Depends(get_request_context),
):
    """
    Change the caller's password

    400 on a wrong current password or a too-short new one, 404 if the account vanished.
    """
    identity_service.change_credential(
        db,
        actor_id=current_actor.id,
        current_password=body.current_password,
        new_password=body.new_password,
        context=context,
    )
    return MessageResponse(message="Password updated successfully")
