"""
Permission decisions

Pure functions: no database, no network. Endpoints and services ask these
questions instead of comparing role strings inline.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from staffleave.models.user import Role, TeacherRole
from staffleave.schemas.actor import Actor
from staffleave.utils.enums import enum_to_str

MISSING_REQUIRED_FIELDS = "Missing required fields"
STUDENT_LEVEL_REQUIRED = "Students must have a level assigned"

_REQUIRED_USER_FIELDS = ("name", "email", "password", "role")
_SENSITIVE_FIELDS = ("password", "password_hash")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None


def can_manage_users(role: Union[Role, str, None]) -> bool:
    """Only ADMIN manages user accounts"""
    return enum_to_str(role) == Role.ADMIN.value


def can_approve_leave(actor: Optional[Actor]) -> bool:
    """Leave approval is a PRINCIPAL capability, whatever the coarse role"""
    if actor is None:
        return False
    return TeacherRole.PRINCIPAL in actor.teacher_roles


def can_view_all_leave(actor: Optional[Actor]) -> bool:
    """School-wide leave listings and statistics: admins and principals"""
    if actor is None:
        return False
    return can_manage_users(actor.role) or can_approve_leave(actor)


def validate_user_creation(candidate: Union[Mapping[str, Any], Any]) -> ValidationResult:
    """
    Check a new-user payload (mapping or pydantic model).

    Required: name, email, password, role. Students also need a level.
    """
    data = candidate.model_dump() if hasattr(candidate, "model_dump") else dict(candidate)

    for field in _REQUIRED_USER_FIELDS:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return ValidationResult(valid=False, error=MISSING_REQUIRED_FIELDS)

    if enum_to_str(data.get("role")) == Role.STUDENT.value and not data.get("level"):
        return ValidationResult(valid=False, error=STUDENT_LEVEL_REQUIRED)

    return ValidationResult(valid=True)


def filter_sensitive_data(user: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of a user mapping without password material"""
    return {key: value for key, value in user.items() if key not in _SENSITIVE_FIELDS}
