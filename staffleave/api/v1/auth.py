"""
Authentication endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from staffleave.core.deps import get_db, get_request_context
from staffleave.schemas.actor import RequestContext
from staffleave.schemas.auth import LoginRequest, TokenResponse
from staffleave.services import identity_service

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
):
    """
    Authenticate user and return JWT token

    Every attempt, successful or not, is written to the audit log.
    """
    access_token = identity_service.authenticate(db, login_data.email, login_data.password, context)
    return TokenResponse(access_token=access_token, token_type="bearer")
