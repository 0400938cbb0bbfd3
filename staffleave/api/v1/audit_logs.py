"""
Audit log endpoints (ADMIN only)
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from staffleave.core.deps import get_db, get_request_context, require_roles
from staffleave.models.audit_log import AuditAction
from staffleave.models.user import Role
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.schemas.audit import AuditLogListResponse
from staffleave.services import audit_service
from staffleave.utils.csv_export import stream_csv
from staffleave.utils.datetime_utils import today_local

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    search: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    action: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(Role.ADMIN)),
):
    """Paginated audit trail, newest first"""
    logs, pagination = audit_service.list_audit_logs(
        db,
        page=page,
        limit=limit,
        search=search,
        start_date=start_date,
        end_date=end_date,
        action=action,
        role=role,
    )
    return {"logs": logs, "pagination": pagination}


@router.get("/export")
def export_audit_logs(
    search: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    action: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: Actor = Depends(require_roles(Role.ADMIN)),
    context: RequestContext = Depends(get_request_context),
):
    """Download the filtered audit trail as CSV"""
    filters = {
        "search": search,
        "start_date": start_date,
        "end_date": end_date,
        "action": action,
        "role": role,
    }
    # Materialise before the session is released; the response streams afterwards
    rows = list(audit_service.iter_audit_export_rows(db, **filters))
    audit_service.log_activity(
        db,
        action=AuditAction.EXPORT,
        entity_id="audit_logs",
        entity_type="AUDIT_LOG",
        actor=admin,
        context=context,
        details={"rows": len(rows), "filters": filters},
    )
    return stream_csv(
        audit_service.AUDIT_EXPORT_HEADERS,
        rows,
        filename=f"audit-logs-{today_local().isoformat()}.csv",
    )
