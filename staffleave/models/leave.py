"""
Leave submission model
"""
from sqlalchemy import (
    Column,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Text,
    Numeric,
    Enum as SQLEnum,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
import enum
from staffleave.db.base import Base


class SubmissionType(str, enum.Enum):
    ANNUAL_LEAVE = "ANNUAL_LEAVE"
    MEDICAL_CERT = "MEDICAL_CERT"


class SubmissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class DecisionOutcome(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


# Decision outcome -> terminal status
OUTCOME_STATUS = {
    DecisionOutcome.APPROVE: SubmissionStatus.APPROVED,
    DecisionOutcome.REJECT: SubmissionStatus.REJECTED,
}

LEAVE_SUBMISSION_TYPES = (SubmissionType.ANNUAL_LEAVE, SubmissionType.MEDICAL_CERT)


class LeaveSubmission(Base):
    __tablename__ = "leave_submissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(SQLEnum(SubmissionType), nullable=False)
    status = Column(SQLEnum(SubmissionStatus), nullable=False, server_default=text("'PENDING'"))
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Numeric(5, 1), nullable=False)  # inclusive calendar-day span
    reason = Column(Text, nullable=True)
    decided_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    decision_note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="leave_submissions")
    decided_by = relationship("User", foreign_keys=[decided_by_id])

    __table_args__ = (
        Index("ix_leave_submissions_status_created", "status", "created_at"),
        CheckConstraint("start_date <= end_date", name="check_start_date_le_end_date"),
        CheckConstraint(
            "(status = 'PENDING') OR (decided_by_id IS NOT NULL AND decided_at IS NOT NULL)",
            name="check_decided_fields_on_terminal",
        ),
    )
