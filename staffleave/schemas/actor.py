"""
Verified caller identity and request provenance passed explicitly into services
"""
import logging
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field

from staffleave.models.user import Role, TeacherRole, User

logger = logging.getLogger(__name__)


class Actor(BaseModel):
    """Immutable identity of the caller for the duration of one operation"""
    id: int
    name: str
    email: str
    role: Role
    teacher_roles: FrozenSet[TeacherRole] = Field(default_factory=frozenset)
    employment_type: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        """Project a stored user; capability tags that are not recognised are dropped"""
        known = {tag.value for tag in TeacherRole}
        stored = user.teacher_roles or []
        unknown = [tag for tag in stored if tag not in known]
        if unknown:
            logger.warning("Ignoring unknown teacher roles %s for user_id=%s", unknown, user.id)
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=Role(user.role),
            teacher_roles=frozenset(TeacherRole(tag) for tag in stored if tag in known),
            employment_type=user.employment_type,
        )


class RequestContext(BaseModel):
    """Where a request came from; recorded on audit entries"""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    model_config = ConfigDict(frozen=True)
