"""
Shared test data builders
"""
from datetime import date

from sqlalchemy.orm import Session

from staffleave.core.security import hash_password
from staffleave.models import LeaveSubmission, SubmissionStatus, SubmissionType, User
from staffleave.utils.datetime_utils import now_utc

PASSWORD = "password123"


def make_user(
    db: Session,
    email: str,
    name: str = "Staff Member",
    role: str = "TEACHER",
    teacher_roles=None,
    employment_type="FULL_TIME",
    password: str = PASSWORD,
    active: bool = True,
) -> User:
    """Insert a user directly"""
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        teacher_roles=list(teacher_roles or []),
        employment_type=employment_type,
        active=active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_submission(
    db: Session,
    user: User,
    start: date,
    end: date,
    leave_type: SubmissionType = SubmissionType.ANNUAL_LEAVE,
    status: SubmissionStatus = SubmissionStatus.PENDING,
    decided_by: User = None,
    created_at=None,
) -> LeaveSubmission:
    """Insert a leave submission directly, bypassing balance checks"""
    submission = LeaveSubmission(
        user_id=user.id,
        type=leave_type,
        status=status,
        start_date=start,
        end_date=end,
        days=(end - start).days + 1,
        created_at=created_at or now_utc(),
        updated_at=now_utc(),
    )
    if status != SubmissionStatus.PENDING:
        submission.decided_by_id = (decided_by or user).id
        submission.decided_at = now_utc()
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def get_auth_token(client, email, password=PASSWORD):
    """Helper to get auth token"""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth_headers(client, email, password=PASSWORD):
    return {"Authorization": f"Bearer {get_auth_token(client, email, password)}"}
