"""
User model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from staffleave.db.base import Base


class Role(str, enum.Enum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"


class TeacherRole(str, enum.Enum):
    """Capabilities granted to staff independently of their coarse role"""
    PRINCIPAL = "PRINCIPAL"
    FORM = "FORM"
    TAHFIZ = "TAHFIZ"


class Level(str, enum.Enum):
    SECONDARY_1 = "SECONDARY_1"
    SECONDARY_2 = "SECONDARY_2"
    SECONDARY_3 = "SECONDARY_3"
    SECONDARY_4 = "SECONDARY_4"


class EmploymentType(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    PERMANENT_PART_TIME = "PERMANENT_PART_TIME"
    PART_TIME = "PART_TIME"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)
    level = Column(String, nullable=True)  # students only
    ic_number = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    teacher_roles = Column(JSON, nullable=False, default=list)  # list of TeacherRole values
    employment_type = Column(String, nullable=True)  # staff only
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    # Relationships
    leave_submissions = relationship(
        "LeaveSubmission",
        foreign_keys="LeaveSubmission.user_id",
        back_populates="user",
    )
