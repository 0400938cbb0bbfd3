"""
Leave schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from staffleave.models.leave import SubmissionType, SubmissionStatus, DecisionOutcome
from staffleave.utils.datetime_utils import iso_local


class LeaveSubmitRequest(BaseModel):
    """Schema for submitting leave (always for the caller)"""
    type: SubmissionType = Field(..., description="ANNUAL_LEAVE or MEDICAL_CERT")
    start_date: date = Field(..., alias="startDate", description="First day of leave")
    end_date: date = Field(..., alias="endDate", description="Last day of leave (inclusive)")
    reason: Optional[str] = Field(None, description="Reason for leave")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_range(self) -> "LeaveSubmitRequest":
        if self.start_date > self.end_date:
            raise ValueError("startDate must be on or before endDate")
        return self


class LeaveDecisionRequest(BaseModel):
    """Schema for approving or rejecting a pending submission"""
    outcome: DecisionOutcome = Field(..., description="APPROVE or REJECT")
    note: Optional[str] = Field(None, description="Optional note from the approver")


class SubmitterSummary(BaseModel):
    """Embedded submitter details for approvers"""
    id: int
    name: str
    email: str
    employment_type: Optional[str] = Field(None, serialization_alias="employmentType")

    model_config = ConfigDict(from_attributes=True)


class LeaveSubmissionOut(BaseModel):
    """Schema for leave submission output"""
    id: int
    user_id: int = Field(..., serialization_alias="userId")
    type: SubmissionType
    status: SubmissionStatus
    start_date: date = Field(..., serialization_alias="startDate")
    end_date: date = Field(..., serialization_alias="endDate")
    days: Decimal
    reason: Optional[str] = None
    created_at: datetime = Field(..., serialization_alias="createdAt")
    decided_by_id: Optional[int] = Field(None, serialization_alias="decidedBy")
    decided_at: Optional[datetime] = Field(None, serialization_alias="decidedAt")
    decision_note: Optional[str] = Field(None, serialization_alias="decisionNote")

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "decided_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)

    @field_serializer("days")
    def _ser_days(self, value: Decimal) -> float:
        return float(value)


class LeaveSubmissionWithUserOut(LeaveSubmissionOut):
    """Submission plus submitter summary (approvals queue, admin listing)"""
    user: SubmitterSummary


class BalanceBucketOut(BaseModel):
    accrued_days: float = Field(..., serialization_alias="accruedDays")
    consumed_days: float = Field(..., serialization_alias="consumedDays")
    pending_days: float = Field(..., serialization_alias="pendingDays")
    remaining_days: float = Field(..., serialization_alias="remainingDays")


class LeaveBalanceOut(BaseModel):
    """Annual leave balance (top level) with the medical allotment alongside"""
    employment_type: str = Field(..., serialization_alias="employmentType")
    year: int
    accrued_days: float = Field(..., serialization_alias="accruedDays")
    consumed_days: float = Field(..., serialization_alias="consumedDays")
    pending_days: float = Field(..., serialization_alias="pendingDays")
    remaining_days: float = Field(..., serialization_alias="remainingDays")
    overdrawn_days: float = Field(0.0, serialization_alias="overdrawnDays")
    medical: BalanceBucketOut


class LeaveStatsOut(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    mc: int
