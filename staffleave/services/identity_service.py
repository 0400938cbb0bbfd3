"""
Identity service - turns credentials and bearer tokens into a verified Actor

Also owns the one credential mutation the service supports: changing one's
own password. Login attempts and password changes are always audited.
"""
import logging
from typing import Iterable, Optional, Union

from sqlalchemy.orm import Session

from staffleave.core.config import settings
from staffleave.core.errors import (
    Forbidden,
    InvalidCredential,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from staffleave.core.security import create_access_token, decode_token, hash_password, verify_password
from staffleave.db import repository
from staffleave.models.audit_log import AuditAction, AuditSeverity
from staffleave.models.user import Role, User
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.services.audit_service import log_activity
from staffleave.utils.enums import enum_to_str

logger = logging.getLogger(__name__)

AUTH_ENTITY = "AUTH"
USER_ENTITY = "USER"

# Verified against when the email is unknown so every failed login costs one hash check
_DUMMY_PASSWORD_HASH = hash_password("staffleave-unknown-account")


def authenticate(
    db: Session,
    email: str,
    password: str,
    context: Optional[RequestContext] = None,
) -> str:
    """
    Verify email/password and issue an access token

    Every attempt is audited: success as INFO under the user, failure as
    WARNING (under "system" when the email matches nobody).

    Raises:
        Unauthenticated: Unknown email, wrong password or inactive account
    """
    user = repository.find_user_by_email(db, email) if email else None

    if user is None:
        verify_password(password, _DUMMY_PASSWORD_HASH)
    if user is None or not user.active or not verify_password(password, user.password_hash):
        reason = "unknown_email" if user is None else ("inactive" if not user.active else "bad_password")
        logger.warning("login failed: email=%s reason=%s", email, reason)
        log_activity(
            db,
            action=AuditAction.LOGIN,
            entity_id=user.id if user is not None else (email or "unknown"),
            entity_type=AUTH_ENTITY,
            actor_id=user.id if user is not None else None,
            actor_name=user.name if user is not None else None,
            actor_role=user.role if user is not None else None,
            severity=AuditSeverity.WARNING,
            context=context,
            details={"success": False, "email": email, "reason": reason},
        )
        raise Unauthenticated("Invalid email or password")

    token = create_access_token({"sub": str(user.id), "role": user.role})
    log_activity(
        db,
        action=AuditAction.LOGIN,
        entity_id=user.id,
        entity_type=AUTH_ENTITY,
        actor=Actor.from_user(user),
        context=context,
        details={"success": True},
    )
    return token


def resolve_actor(db: Session, token: Optional[str]) -> Actor:
    """
    Resolve a bearer token into the current Actor

    Raises:
        Unauthenticated: Missing/invalid token, or the account is gone or inactive
    """
    if not token:
        raise Unauthenticated()
    try:
        payload = decode_token(token)
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise Unauthenticated("Invalid authentication credentials")

    user = repository.find_actor_by_id(db, user_id)
    if user is None or not user.active:
        raise Unauthenticated("Invalid authentication credentials")
    return Actor.from_user(user)


def require_authenticated(actor: Optional[Actor]) -> Actor:
    """Raises Unauthenticated when there is no verified actor"""
    if actor is None:
        raise Unauthenticated()
    return actor


def require_role(actor: Optional[Actor], allowed: Iterable[Union[Role, str]]) -> Actor:
    """
    Raises:
        Unauthenticated: No actor
        Forbidden: Actor's coarse role is not in allowed
    """
    actor = require_authenticated(actor)
    allowed_values = {enum_to_str(role) for role in allowed}
    if actor.role.value not in allowed_values:
        raise Forbidden(f"Access denied. Required roles: {sorted(allowed_values)}")
    return actor


def get_profile(db: Session, actor: Actor) -> User:
    """
    The caller's own stored profile

    Raises:
        NotFound: The account disappeared after the token was resolved
    """
    user = repository.find_actor_by_id(db, actor.id)
    if user is None:
        raise NotFound("User not found")
    return user


def change_credential(
    db: Session,
    actor_id: int,
    current_password: str,
    new_password: str,
    context: Optional[RequestContext] = None,
) -> None:
    """
    Change the caller's password

    The current password is checked first, so a wrong one is reported as
    InvalidCredential whatever the new password looks like. Both the
    successful change and a rejected current password are audited.

    Raises:
        NotFound: The account no longer exists
        InvalidCredential: current_password does not match
        ValidationError: new_password is too short
    """
    user = repository.find_actor_by_id(db, actor_id)
    if user is None:
        raise NotFound("User not found")
    actor = Actor.from_user(user)

    if not verify_password(current_password or "", user.password_hash):
        logger.warning("password change rejected: user_id=%s reason=bad_current_password", actor_id)
        log_activity(
            db,
            action=AuditAction.PASSWORD_CHANGE,
            entity_id=user.id,
            entity_type=USER_ENTITY,
            actor=actor,
            severity=AuditSeverity.WARNING,
            context=context,
            details={"success": False, "reason": "bad_current_password"},
        )
        raise InvalidCredential()

    min_length = settings.MIN_PASSWORD_LENGTH
    if new_password is None or len(new_password) < min_length:
        raise ValidationError(f"New password must be at least {min_length} characters long")

    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("password changed: user_id=%s", actor_id)

    log_activity(
        db,
        action=AuditAction.PASSWORD_CHANGE,
        entity_id=user.id,
        entity_type=USER_ENTITY,
        actor=actor,
        severity=AuditSeverity.CRITICAL,
        context=context,
        details={"success": True},
    )
