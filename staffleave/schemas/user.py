"""
User schemas
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from staffleave.models.user import Role, TeacherRole, Level, EmploymentType
from staffleave.utils.datetime_utils import iso_local


class UserCreate(BaseModel):
    """
    Schema for creating a user

    Required-field and student-level rules are checked by the permission
    service so that the error messages stay stable.
    """
    name: Optional[str] = Field(None, description="Full name")
    email: Optional[str] = Field(None, description="Login email (unique)")
    password: Optional[str] = Field(None, description="Initial password")
    role: Optional[Role] = Field(None, description="Coarse access role")
    level: Optional[Level] = Field(None, description="Student level (students only)")
    ic_number: Optional[str] = Field(None, alias="icNumber", description="Identity card number")
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    teacher_roles: List[TeacherRole] = Field(default_factory=list, alias="teacherRoles")
    employment_type: Optional[EmploymentType] = Field(None, alias="employmentType")

    model_config = ConfigDict(populate_by_name=True)


class UserOut(BaseModel):
    """Profile projection; never includes the password hash"""
    id: int
    name: str
    email: str
    role: Role
    level: Optional[str] = None
    ic_number: Optional[str] = Field(None, serialization_alias="icNumber")
    phone_number: Optional[str] = Field(None, serialization_alias="phoneNumber")
    teacher_roles: List[str] = Field(default_factory=list, serialization_alias="teacherRoles")
    employment_type: Optional[str] = Field(None, serialization_alias="employmentType")
    active: bool = True
    created_at: datetime = Field(..., serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at")
    def _ser_created_at(self, dt: datetime) -> str:
        return iso_local(dt)


class ChangePasswordRequest(BaseModel):
    """
    Change password request

    Lengths are enforced by the identity service: a wrong current password
    must be reported before anything is said about the new one.
    """
    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(BaseModel):
    message: str


class UserUpdate(BaseModel):
    """
    Schema for updating a user; only fields that are sent are changed

    Changing the role resets fields that do not apply to the new role.
    """
    name: Optional[str] = Field(None, description="Full name")
    email: Optional[str] = Field(None, description="Login email (unique)")
    password: Optional[str] = Field(None, description="New password (admin reset)")
    role: Optional[Role] = Field(None, description="Coarse access role")
    level: Optional[Level] = Field(None, description="Student level (students only)")
    ic_number: Optional[str] = Field(None, alias="icNumber")
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    teacher_roles: Optional[List[TeacherRole]] = Field(None, alias="teacherRoles")
    employment_type: Optional[EmploymentType] = Field(None, alias="employmentType")
    active: Optional[bool] = Field(None, description="Re-enable a deactivated account")

    model_config = ConfigDict(populate_by_name=True)
