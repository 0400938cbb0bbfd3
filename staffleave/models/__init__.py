"""
Database models
"""
from staffleave.models.user import User, Role, TeacherRole, Level, EmploymentType
from staffleave.models.audit_log import AuditLog, AuditAction, AuditSeverity, AuditLogImmutableError
from staffleave.models.leave import (
    LeaveSubmission,
    SubmissionType,
    SubmissionStatus,
    DecisionOutcome,
    OUTCOME_STATUS,
    LEAVE_SUBMISSION_TYPES,
)

__all__ = [
    "User",
    "Role",
    "TeacherRole",
    "Level",
    "EmploymentType",
    "AuditLog",
    "AuditAction",
    "AuditSeverity",
    "AuditLogImmutableError",
    "LeaveSubmission",
    "SubmissionType",
    "SubmissionStatus",
    "DecisionOutcome",
    "OUTCOME_STATUS",
    "LEAVE_SUBMISSION_TYPES",
]
