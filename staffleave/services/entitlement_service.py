"""
Leave entitlement service - yearly allotments by employment type.

- FULL_TIME: 14 annual / 14 medical.
- PERMANENT_PART_TIME: 7 annual / 14 medical.
- PART_TIME: 7 annual / 7 medical.
- Only APPROVED submissions consume an allotment; PENDING days are reported
  separately. Medical certificates draw on the medical allotment only.
- Year scope: submissions whose start date falls in the calendar year.
- Unknown employment type is a configuration gap, never a silent default.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Union

from sqlalchemy.orm import Session

from staffleave.core.errors import ConfigurationError, ValidationError
from staffleave.db import repository
from staffleave.models.leave import LeaveSubmission, SubmissionStatus, SubmissionType
from staffleave.models.user import EmploymentType
from staffleave.utils.datetime_utils import today_local
from staffleave.utils.enums import enum_to_str

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allotment:
    annual_days: int
    medical_days: int


ENTITLEMENT_POLICY: Mapping[str, Allotment] = MappingProxyType({
    EmploymentType.FULL_TIME.value: Allotment(annual_days=14, medical_days=14),
    EmploymentType.PERMANENT_PART_TIME.value: Allotment(annual_days=7, medical_days=14),
    EmploymentType.PART_TIME.value: Allotment(annual_days=7, medical_days=7),
})


@dataclass(frozen=True)
class BalanceBucket:
    accrued_days: float
    consumed_days: float
    pending_days: float
    remaining_days: float
    overdrawn_days: float = 0.0


@dataclass(frozen=True)
class EntitlementBalance:
    employment_type: str
    year: int
    annual: BalanceBucket
    medical: BalanceBucket

    @property
    def accrued_days(self) -> float:
        return self.annual.accrued_days

    @property
    def consumed_days(self) -> float:
        return self.annual.consumed_days

    @property
    def remaining_days(self) -> float:
        return self.annual.remaining_days

    def as_response(self) -> Dict[str, object]:
        return {
            "employment_type": self.employment_type,
            "year": self.year,
            "accrued_days": self.annual.accrued_days,
            "consumed_days": self.annual.consumed_days,
            "pending_days": self.annual.pending_days,
            "remaining_days": self.annual.remaining_days,
            "overdrawn_days": self.annual.overdrawn_days,
            "medical": {
                "accrued_days": self.medical.accrued_days,
                "consumed_days": self.medical.consumed_days,
                "pending_days": self.medical.pending_days,
                "remaining_days": self.medical.remaining_days,
            },
        }


def get_allotment(employment_type: Union[EmploymentType, str, None]) -> Allotment:
    """
    Look up the yearly allotment for an employment type

    Raises:
        ConfigurationError: If the type is missing or has no policy
    """
    key = enum_to_str(employment_type)
    allotment = ENTITLEMENT_POLICY.get(key) if key else None
    if allotment is None:
        logger.critical("No leave entitlement policy for employment_type=%r", key)
        raise ConfigurationError()
    return allotment


def _bucket(accrued: int, submissions: Iterable[LeaveSubmission], leave_type: SubmissionType) -> BalanceBucket:
    consumed = Decimal("0")
    pending = Decimal("0")
    for sub in submissions:
        if sub.type != leave_type:
            continue
        if sub.status == SubmissionStatus.APPROVED:
            consumed += Decimal(sub.days)
        elif sub.status == SubmissionStatus.PENDING:
            pending += Decimal(sub.days)

    raw_remaining = Decimal(accrued) - consumed
    overdrawn = -raw_remaining if raw_remaining < 0 else Decimal("0")
    return BalanceBucket(
        accrued_days=float(accrued),
        consumed_days=float(consumed),
        pending_days=float(pending),
        remaining_days=float(max(Decimal("0"), raw_remaining)),
        overdrawn_days=float(overdrawn),
    )


def calculate_leave_balance(
    db: Session,
    user_id: int,
    employment_type: Union[EmploymentType, str, None],
    as_of: Optional[date] = None,
) -> EntitlementBalance:
    """
    Compute a user's leave balance for the calendar year containing as_of

    Reads submission history only; calling it twice on unchanged data gives
    the same result.

    Raises:
        ConfigurationError: If the employment type has no policy
    """
    allotment = get_allotment(employment_type)
    year = (as_of or today_local()).year

    submissions = repository.list_user_submissions_in_range(
        db,
        user_id=user_id,
        range_start=date(year, 1, 1),
        range_end=date(year, 12, 31),
        statuses=(SubmissionStatus.APPROVED, SubmissionStatus.PENDING),
    )

    annual = _bucket(allotment.annual_days, submissions, SubmissionType.ANNUAL_LEAVE)
    medical = _bucket(allotment.medical_days, submissions, SubmissionType.MEDICAL_CERT)

    if annual.overdrawn_days:
        logger.warning(
            "annual leave overdrawn: user_id=%s year=%s overdrawn_days=%s",
            user_id, year, annual.overdrawn_days,
        )

    return EntitlementBalance(
        employment_type=enum_to_str(employment_type),
        year=year,
        annual=annual,
        medical=medical,
    )


def check_sufficient_balance(
    db: Session,
    user_id: int,
    employment_type: Union[EmploymentType, str, None],
    leave_type: SubmissionType,
    requested_days: Decimal,
    as_of: Optional[date] = None,
) -> None:
    """
    Reject a new request that would exceed what is left once pending requests are granted

    Raises:
        ConfigurationError: If the employment type has no policy
        ValidationError: If the balance is insufficient
    """
    balance = calculate_leave_balance(db, user_id, employment_type, as_of=as_of)
    if leave_type == SubmissionType.ANNUAL_LEAVE:
        bucket, label = balance.annual, "Annual Leave"
    else:
        bucket, label = balance.medical, "Medical Leave"

    available = max(0.0, bucket.remaining_days - bucket.pending_days)
    if float(requested_days) > available:
        raise ValidationError(f"Insufficient {label} balance. Remaining: {available:g} days.")
