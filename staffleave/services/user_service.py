"""
User administration (ADMIN only)
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffleave.core.errors import Forbidden, InvalidState, NotFound, ValidationError
from staffleave.core.security import hash_password
from staffleave.db import repository
from staffleave.models.audit_log import AuditAction
from staffleave.models.user import Role, User
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.schemas.user import UserCreate, UserUpdate
from staffleave.services.audit_service import log_activity
from staffleave.services.permission_service import (
    MISSING_REQUIRED_FIELDS,
    STUDENT_LEVEL_REQUIRED,
    can_manage_users,
    filter_sensitive_data,
    validate_user_creation,
)
from staffleave.utils.enums import enum_to_str
from staffleave.utils.validation import validate_ic_number, validate_required_text

logger = logging.getLogger(__name__)


def create_user(
    db: Session,
    admin: Actor,
    payload: UserCreate,
    context: Optional[RequestContext] = None,
) -> User:
    """
    Create a user account

    Raises:
        Forbidden: Caller is not ADMIN
        ValidationError: Missing fields, student without level, bad IC number
        InvalidState: Email already registered
    """
    if not can_manage_users(admin.role):
        raise Forbidden()

    result = validate_user_creation(payload)
    if not result.valid:
        raise ValidationError(result.error)
    if not validate_required_text(payload.name):
        raise ValidationError("Missing required fields")
    if payload.ic_number is not None and not validate_ic_number(payload.ic_number):
        raise ValidationError("Invalid IC number format")

    email = payload.email.strip().lower()
    if repository.find_user_by_email(db, email) is not None:
        raise InvalidState("A user with this email already exists")

    user = User(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        level=enum_to_str(payload.level) if payload.role == Role.STUDENT else None,
        ic_number=payload.ic_number.strip() if payload.ic_number else None,
        phone_number=payload.phone_number,
        teacher_roles=[enum_to_str(tag) for tag in payload.teacher_roles],
        employment_type=enum_to_str(payload.employment_type),
        active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidState("A user with this email already exists")
    db.refresh(user)

    logger.info("user created: user_id=%s role=%s by=%s", user.id, user.role, admin.id)
    log_activity(
        db,
        action=AuditAction.CREATE,
        entity_id=user.id,
        entity_type="USER",
        actor=admin,
        context=context,
        details=filter_sensitive_data(payload.model_dump()),
    )
    return user


def list_users(db: Session, admin: Actor, role: Optional[Role] = None) -> List[User]:
    """All accounts, newest first"""
    if not can_manage_users(admin.role):
        raise Forbidden()
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role.value)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(db: Session, admin: Actor, user_id: int) -> User:
    """
    Raises:
        Forbidden: Caller is not ADMIN
        NotFound: No such user
    """
    if not can_manage_users(admin.role):
        raise Forbidden()
    user = repository.find_actor_by_id(db, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def update_user(
    db: Session,
    admin: Actor,
    user_id: int,
    payload: UserUpdate,
    context: Optional[RequestContext] = None,
) -> User:
    """
    Update a user account (partial)

    Only the fields present in the payload change. The effective role decides
    which profile fields survive: students keep a level, teachers keep
    capability tags and employment type, admins keep neither.

    Raises:
        Forbidden: Caller is not ADMIN
        NotFound: No such user
        ValidationError: Blank name/email/password, student without level, bad IC number
        InvalidState: Email belongs to another account
    """
    user = get_user(db, admin, user_id)
    changes = payload.model_dump(exclude_unset=True)

    for field in ("name", "email", "password"):
        if field in changes and not validate_required_text(changes[field]):
            raise ValidationError(MISSING_REQUIRED_FIELDS)
    if changes.get("ic_number") and not validate_ic_number(changes["ic_number"]):
        raise ValidationError("Invalid IC number format")
    if changes.get("active") is False and user.id == admin.id:
        raise ValidationError("Cannot deactivate your own account")

    effective_role = enum_to_str(changes.get("role")) or user.role
    effective_level = enum_to_str(changes["level"]) if "level" in changes else user.level
    if effective_role == Role.STUDENT.value and not effective_level:
        raise ValidationError(STUDENT_LEVEL_REQUIRED)

    if "email" in changes:
        email = changes["email"].strip().lower()
        existing = repository.find_user_by_email(db, email)
        if existing is not None and existing.id != user.id:
            raise InvalidState("A user with this email already exists")
        user.email = email
    if "name" in changes:
        user.name = changes["name"].strip()
    if "password" in changes:
        user.password_hash = hash_password(changes["password"])
    if changes.get("role") is not None:
        user.role = enum_to_str(changes["role"])
    if changes.get("active") is not None:
        user.active = changes["active"]
    if "ic_number" in changes:
        user.ic_number = changes["ic_number"].strip() if changes["ic_number"] else None
    if "phone_number" in changes:
        user.phone_number = changes["phone_number"]

    if user.role == Role.STUDENT.value:
        user.level = effective_level
        user.teacher_roles = []
        user.employment_type = None
    elif user.role == Role.TEACHER.value:
        user.level = None
        if changes.get("teacher_roles") is not None:
            user.teacher_roles = [enum_to_str(tag) for tag in changes["teacher_roles"]]
        if "employment_type" in changes:
            user.employment_type = enum_to_str(changes["employment_type"])
    else:
        user.level = None
        user.teacher_roles = []
        user.employment_type = None

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidState("A user with this email already exists")
    db.refresh(user)

    logger.info("user updated: user_id=%s fields=%s by=%s", user.id, sorted(changes), admin.id)
    log_activity(
        db,
        action=AuditAction.UPDATE,
        entity_id=user.id,
        entity_type="USER",
        actor=admin,
        context=context,
        details={"changed": sorted(filter_sensitive_data(changes))},
    )
    return user


def deactivate_user(
    db: Session,
    admin: Actor,
    user_id: int,
    context: Optional[RequestContext] = None,
) -> User:
    """
    Deactivate a user account

    Accounts are never removed because leave history and audit rows refer
    to them; an inactive account can no longer log in or use its tokens.

    Raises:
        Forbidden: Caller is not ADMIN
        ValidationError: Admin targets their own account
        NotFound: No such user
    """
    if not can_manage_users(admin.role):
        raise Forbidden()
    if user_id == admin.id:
        raise ValidationError("Cannot deactivate your own account")
    user = get_user(db, admin, user_id)
    if not user.active:
        return user

    user.active = False
    db.commit()
    db.refresh(user)

    logger.info("user deactivated: user_id=%s by=%s", user.id, admin.id)
    log_activity(
        db,
        action=AuditAction.DELETE,
        entity_id=user.id,
        entity_type="USER",
        actor=admin,
        context=context,
        details={"active": False},
    )
    return user
