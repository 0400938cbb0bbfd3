"""
Leave service - business logic for the leave request lifecycle

States: PENDING (initial) -> APPROVED | REJECTED (terminal). The only way a
status changes is decide_leave, which uses a conditional UPDATE so that two
concurrent decisions produce exactly one winner.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from staffleave.core.errors import (
    Forbidden,
    InvalidState,
    NotFound,
    StorageError,
    Unavailable,
    ValidationError,
)
from staffleave.db import repository
from staffleave.models.audit_log import AuditAction, AuditSeverity
from staffleave.models.leave import (
    LEAVE_SUBMISSION_TYPES,
    OUTCOME_STATUS,
    DecisionOutcome,
    LeaveSubmission,
    SubmissionStatus,
    SubmissionType,
)
from staffleave.models.user import User
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.services import entitlement_service
from staffleave.services.audit_service import log_activity
from staffleave.services.permission_service import can_approve_leave, can_view_all_leave
from staffleave.utils.datetime_utils import now_utc, utc_for_storage

logger = logging.getLogger(__name__)

ENTITY_TYPE = "LEAVE_SUBMISSION"


def _storage_failure(db: Session, operation: str, exc: SQLAlchemyError) -> Exception:
    """Roll back and translate a storage error; full detail stays in the server log"""
    db.rollback()
    logger.error("leave storage failure during %s: %s", operation, exc, exc_info=True)
    if isinstance(exc, OperationalError):
        return Unavailable()
    return StorageError()


def calculate_days(start_date: date, end_date: date) -> Decimal:
    """Inclusive calendar-day span"""
    return Decimal((end_date - start_date).days + 1)


def validate_leave_range(start_date: date, end_date: date) -> None:
    """
    Both dates must be in order and inside one calendar year (entitlements are yearly)

    Raises:
        ValidationError: If the range is reversed or crosses a year boundary
    """
    if start_date > end_date:
        raise ValidationError("startDate must be on or before endDate")
    if start_date.year != end_date.year:
        raise ValidationError(
            f"Leave cannot span across years. Start year: {start_date.year}, End year: {end_date.year}"
        )


def submit_leave(
    db: Session,
    actor: Actor,
    leave_type: SubmissionType,
    start_date: date,
    end_date: date,
    reason: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> LeaveSubmission:
    """
    Create a PENDING leave submission owned by the caller

    No approval authority is needed; the owner is always actor.id.

    Raises:
        ValidationError: Bad range or insufficient balance
        ConfigurationError: Caller's employment type has no policy
        Unavailable / StorageError: Store failure
    """
    if leave_type not in LEAVE_SUBMISSION_TYPES:
        raise ValidationError(f"Unsupported leave type: {leave_type}")
    validate_leave_range(start_date, end_date)
    days = calculate_days(start_date, end_date)

    try:
        entitlement_service.check_sufficient_balance(
            db,
            user_id=actor.id,
            employment_type=actor.employment_type,
            leave_type=leave_type,
            requested_days=days,
            as_of=start_date,
        )

        submission = LeaveSubmission(
            user_id=actor.id,
            type=leave_type,
            status=SubmissionStatus.PENDING,
            start_date=start_date,
            end_date=end_date,
            days=days,
            reason=reason,
            created_at=now_utc(),
            updated_at=now_utc(),
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "submit", exc)

    logger.info(
        "leave submitted: submission_id=%s user_id=%s type=%s days=%s",
        submission.id, actor.id, leave_type.value, days,
    )
    log_activity(
        db,
        action=AuditAction.CREATE,
        entity_id=submission.id,
        entity_type=ENTITY_TYPE,
        actor=actor,
        context=context,
        details={
            "type": leave_type,
            "start_date": start_date,
            "end_date": end_date,
            "days": days,
            "status": SubmissionStatus.PENDING,
        },
    )
    return submission


def list_pending(db: Session, actor: Actor) -> List[LeaveSubmission]:
    """
    Pending annual-leave and MC submissions, oldest first

    Raises:
        Forbidden: If the caller lacks the PRINCIPAL capability
    """
    if not can_approve_leave(actor):
        raise Forbidden("Access denied. Principal role required.")
    try:
        return repository.list_submissions_by_status(db, SubmissionStatus.PENDING, LEAVE_SUBMISSION_TYPES)
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "list_pending", exc)


def decide_leave(
    db: Session,
    approver: Actor,
    submission_id: int,
    outcome: DecisionOutcome,
    note: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> LeaveSubmission:
    """
    Approve or reject a pending submission

    Checks run in this order so a caller without authority learns nothing
    about whether the submission exists: Forbidden, NotFound, InvalidState.

    Raises:
        Forbidden: Caller lacks the PRINCIPAL capability
        NotFound: No such submission
        InvalidState: Submission already decided (including by a concurrent call)
        Unavailable / StorageError: Store failure; nothing is persisted
    """
    if not can_approve_leave(approver):
        raise Forbidden()

    new_status = OUTCOME_STATUS[DecisionOutcome(outcome)]

    try:
        submission = repository.get_submission(db, submission_id)
        if submission is None:
            raise NotFound(f"Leave submission {submission_id} not found")
        if submission.status != SubmissionStatus.PENDING:
            raise InvalidState(f"Leave submission has already been {submission.status.value.lower()}")

        before_status = submission.status.value
        won = repository.update_submission_status_if_pending(
            db,
            submission_id=submission_id,
            new_status=new_status,
            decided_by_id=approver.id,
            decided_at=now_utc(),
            note=note,
        )
        if not won:
            db.rollback()
            raise InvalidState("Leave submission has already been decided")
        db.commit()
        db.refresh(submission)
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "decide", exc)

    logger.info(
        "leave status transition: submission_id=%s before=%s after=%s decided_by=%s",
        submission_id, before_status, new_status.value, approver.id,
    )

    audit_action = AuditAction.APPROVE if new_status == SubmissionStatus.APPROVED else AuditAction.REJECT
    log_activity(
        db,
        action=audit_action,
        entity_id=submission.id,
        entity_type=ENTITY_TYPE,
        actor=approver,
        severity=AuditSeverity.INFO,
        context=context,
        details={
            "status": new_status,
            "note": note,
            "user_id": submission.user_id,
            "type": submission.type,
            "days": submission.days,
        },
    )
    return submission


def list_leaves(
    db: Session,
    actor: Actor,
    user_id: Optional[int] = None,
    status: Optional[SubmissionStatus] = None,
    leave_type: Optional[SubmissionType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
) -> List[LeaveSubmission]:
    """
    Leave submissions visible to the caller, newest first

    Admins and principals see every staff member (optionally filtered);
    everyone else only sees their own. Date filters apply to submission time.
    """
    query = db.query(LeaveSubmission).options(joinedload(LeaveSubmission.user)).filter(
        LeaveSubmission.type.in_(list(LEAVE_SUBMISSION_TYPES))
    )

    if not can_view_all_leave(actor):
        query = query.filter(LeaveSubmission.user_id == actor.id)
    elif user_id is not None:
        query = query.filter(LeaveSubmission.user_id == user_id)

    if status is not None:
        query = query.filter(LeaveSubmission.status == status)
    if leave_type is not None:
        query = query.filter(LeaveSubmission.type == leave_type)
    naive = repository.stores_naive_datetimes(db)
    if start_date is not None:
        query = query.filter(LeaveSubmission.created_at >= utc_for_storage(start_date, naive))
    if end_date is not None:
        query = query.filter(LeaveSubmission.created_at <= utc_for_storage(end_date, naive))
    if search:
        query = query.join(User, LeaveSubmission.user_id == User.id).filter(
            User.name.ilike(f"%{repository.escape_like(search.strip())}%", escape="\\")
        )

    try:
        return query.order_by(LeaveSubmission.created_at.desc(), LeaveSubmission.id.desc()).all()
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "list_leaves", exc)


def get_leave_stats(db: Session, actor: Actor) -> Dict[str, int]:
    """
    School-wide leave counts

    Raises:
        Forbidden: Caller is neither ADMIN nor PRINCIPAL
    """
    if not can_view_all_leave(actor):
        raise Forbidden()

    try:
        rows = (
            db.query(LeaveSubmission.type, LeaveSubmission.status, func.count(LeaveSubmission.id))
            .filter(LeaveSubmission.type.in_(list(LEAVE_SUBMISSION_TYPES)))
            .group_by(LeaveSubmission.type, LeaveSubmission.status)
            .all()
        )
    except SQLAlchemyError as exc:
        raise _storage_failure(db, "stats", exc)

    stats = {"total": 0, "pending": 0, "approved": 0, "rejected": 0, "mc": 0}
    for leave_type, status, count in rows:
        stats["total"] += count
        stats[status.value.lower()] += count
        if leave_type == SubmissionType.MEDICAL_CERT:
            stats["mc"] += count
    return stats
