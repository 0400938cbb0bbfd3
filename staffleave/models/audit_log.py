"""
Audit log model

Rows are append-only: once flushed, the ORM refuses to update or delete them.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Index, event
import enum
from staffleave.db.base import Base


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    EXPORT = "EXPORT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"


class AuditSeverity(str, enum.Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)  # e.g. "LEAVE_SUBMISSION", "USER", "AUTH"
    actor_id = Column(String, nullable=False)  # user id, or "system"
    actor_name = Column(String, nullable=True)
    actor_role = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default=AuditSeverity.INFO.value)  # severity
    # Set explicitly by the audit service; SQLite server defaults lose sub-second precision
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_audit_logs_created_at", "created_at"),
        Index("ix_audit_logs_action", "action"),
    )


class AuditLogImmutableError(RuntimeError):
    """Raised when code tries to modify or remove a persisted audit row"""


@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise AuditLogImmutableError(f"audit log {target.id} is append-only")


@event.listens_for(AuditLog, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise AuditLogImmutableError(f"audit log {target.id} is append-only")
