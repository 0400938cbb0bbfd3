"""
Audit logging service

log_activity never raises: a failed write is rolled back, logged, and counted
so operators can see it on /health, and the caller carries on.
"""
import json
import logging
import math
import threading
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from staffleave.core.constants import (
    SYSTEM_ACTOR_ID,
    SYSTEM_ACTOR_NAME,
    SYSTEM_ACTOR_ROLE,
    UNKNOWN_PROVENANCE,
)
from staffleave.db.repository import escape_like, stores_naive_datetimes
from staffleave.models.audit_log import AuditAction, AuditLog, AuditSeverity
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.utils.datetime_utils import iso_local, now_utc, utc_for_storage
from staffleave.utils.enums import enum_to_str
from staffleave.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)

_failure_lock = threading.Lock()
_failure_count = 0

AUDIT_EXPORT_HEADERS = ["Date", "Action", "Actor", "Role", "Entity", "Entity ID", "IP", "Status", "Details"]


def get_audit_failure_count() -> int:
    """Number of audit entries that could not be persisted since process start"""
    with _failure_lock:
        return _failure_count


def _record_failure() -> None:
    global _failure_count
    with _failure_lock:
        _failure_count += 1


def reset_audit_failure_count() -> None:
    """Used by tests"""
    global _failure_count
    with _failure_lock:
        _failure_count = 0


def log_activity(
    db: Session,
    action: Union[AuditAction, str],
    entity_id: Union[int, str],
    entity_type: str,
    details: Optional[Dict[str, Any]] = None,
    actor: Optional[Actor] = None,
    actor_id: Optional[Union[int, str]] = None,
    actor_name: Optional[str] = None,
    actor_role: Optional[str] = None,
    severity: AuditSeverity = AuditSeverity.INFO,
    context: Optional[RequestContext] = None,
) -> Optional[AuditLog]:
    """
    Append an audit log entry

    Args:
        db: Database session (the caller's business changes must already be committed)
        action: What happened (AuditAction or free-form string)
        entity_id: ID of the affected entity
        entity_type: Type of entity (e.g. "LEAVE_SUBMISSION", "USER", "AUTH")
        details: Additional metadata stored as JSON
        actor: Acting user; explicit actor_id/actor_name/actor_role override it
        severity: INFO, WARNING or CRITICAL
        context: Request provenance; missing values are stored as "unknown"

    Returns:
        The persisted AuditLog, or None if it could not be written
    """
    if actor_id is None and actor is not None:
        actor_id = actor.id
        actor_name = actor_name or actor.name
        actor_role = actor_role or enum_to_str(actor.role)
    if actor_id is None:
        actor_id = SYSTEM_ACTOR_ID

    ip_address = (context.ip_address if context else None) or UNKNOWN_PROVENANCE
    user_agent = (context.user_agent if context else None) or UNKNOWN_PROVENANCE

    try:
        audit_log = AuditLog(
            action=enum_to_str(action),
            entity_id=str(entity_id),
            entity_type=entity_type,
            actor_id=str(actor_id),
            actor_name=actor_name or SYSTEM_ACTOR_NAME,
            actor_role=actor_role or SYSTEM_ACTOR_ROLE,
            ip_address=ip_address,
            user_agent=user_agent,
            details=sanitize_for_json(details or {}),
            status=enum_to_str(severity),
            created_at=now_utc(),
        )
        db.add(audit_log)
        db.commit()
        db.refresh(audit_log)
        return audit_log
    except Exception:
        db.rollback()
        _record_failure()
        logger.error(
            "Failed to create audit log: action=%s entity_type=%s entity_id=%s actor_id=%s",
            enum_to_str(action), entity_type, entity_id, actor_id,
            exc_info=True,
        )
        return None


def _filtered_query(
    db: Session,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    action: Optional[str] = None,
    role: Optional[str] = None,
):
    query = db.query(AuditLog)
    if search:
        pattern = f"%{escape_like(search.strip())}%"
        query = query.filter(or_(
            AuditLog.actor_name.ilike(pattern, escape="\\"),
            AuditLog.entity_id.ilike(pattern, escape="\\"),
            AuditLog.action.ilike(pattern, escape="\\"),
        ))
    naive = stores_naive_datetimes(db)
    if start_date:
        query = query.filter(AuditLog.created_at >= utc_for_storage(start_date, naive))
    if end_date:
        query = query.filter(AuditLog.created_at <= utc_for_storage(end_date, naive))
    if action and action != "ALL":
        query = query.filter(AuditLog.action == action)
    if role and role != "ALL":
        query = query.filter(AuditLog.actor_role == role)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())


def list_audit_logs(
    db: Session,
    page: int = 1,
    limit: int = 10,
    **filters: Any,
) -> Tuple[List[AuditLog], Dict[str, int]]:
    """One page of audit logs, newest first, plus pagination info"""
    query = _filtered_query(db, **filters)
    total = query.count()
    logs = query.offset((page - 1) * limit).limit(limit).all()
    pagination = {
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
        "page": page,
        "limit": limit,
    }
    return logs, pagination


def iter_audit_export_rows(db: Session, **filters: Any) -> Iterator[Dict[str, str]]:
    """Rows for the CSV export, newest first"""
    for log in _filtered_query(db, **filters).all():
        yield {
            "Date": iso_local(log.created_at),
            "Action": log.action,
            "Actor": log.actor_name or log.actor_id,
            "Role": log.actor_role,
            "Entity": log.entity_type,
            "Entity ID": log.entity_id,
            "IP": log.ip_address or "-",
            "Status": log.status,
            "Details": json.dumps(log.details) if log.details else "",
        }
