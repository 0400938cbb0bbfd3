"""
Typed data access for users and leave submissions

Services go through these functions instead of building queries inline.
Nothing here commits; the calling service owns the transaction.
"""
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from staffleave.models.leave import (
    LeaveSubmission,
    SubmissionStatus,
    SubmissionType,
    LEAVE_SUBMISSION_TYPES,
)
from staffleave.models.user import User


def find_actor_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def get_submission(db: Session, submission_id: int) -> Optional[LeaveSubmission]:
    return (
        db.query(LeaveSubmission)
        .options(joinedload(LeaveSubmission.user))
        .filter(LeaveSubmission.id == submission_id)
        .first()
    )


def list_submissions_by_status(
    db: Session,
    status: SubmissionStatus,
    types: Iterable[SubmissionType] = LEAVE_SUBMISSION_TYPES,
) -> List[LeaveSubmission]:
    """Submissions in one status, oldest first (ties broken by id)"""
    return (
        db.query(LeaveSubmission)
        .options(joinedload(LeaveSubmission.user))
        .filter(
            LeaveSubmission.status == status,
            LeaveSubmission.type.in_(list(types)),
        )
        .order_by(LeaveSubmission.created_at.asc(), LeaveSubmission.id.asc())
        .all()
    )


def list_user_submissions_in_range(
    db: Session,
    user_id: int,
    range_start: date,
    range_end: date,
    statuses: Iterable[SubmissionStatus],
) -> List[LeaveSubmission]:
    """A user's leave submissions whose start date falls within [range_start, range_end]"""
    return (
        db.query(LeaveSubmission)
        .filter(
            LeaveSubmission.user_id == user_id,
            LeaveSubmission.type.in_(list(LEAVE_SUBMISSION_TYPES)),
            LeaveSubmission.status.in_(list(statuses)),
            LeaveSubmission.start_date >= range_start,
            LeaveSubmission.start_date <= range_end,
        )
        .order_by(LeaveSubmission.id.asc())
        .all()
    )


def update_submission_status_if_pending(
    db: Session,
    submission_id: int,
    new_status: SubmissionStatus,
    decided_by_id: int,
    decided_at: datetime,
    note: Optional[str] = None,
) -> bool:
    """
    Compare-and-set PENDING -> new_status in one UPDATE statement.

    Returns False when the row is missing or no longer PENDING, which is how
    the loser of two concurrent decisions finds out.
    """
    updated = (
        db.query(LeaveSubmission)
        .filter(
            LeaveSubmission.id == submission_id,
            LeaveSubmission.status == SubmissionStatus.PENDING,
        )
        .update(
            {
                LeaveSubmission.status: new_status,
                LeaveSubmission.decided_by_id: decided_by_id,
                LeaveSubmission.decided_at: decided_at,
                LeaveSubmission.decision_note: note,
            },
            synchronize_session=False,
        )
    )
    return updated == 1


def stores_naive_datetimes(db: Session) -> bool:
    """SQLite keeps DateTime values as text without an offset"""
    return db.get_bind().dialect.name == "sqlite"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards and the backslash escape character so user text matches literally"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
