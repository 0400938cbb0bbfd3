"""
Leave endpoints
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from staffleave.core.deps import get_db, get_current_actor, get_request_context, require_principal
from staffleave.models.leave import SubmissionStatus, SubmissionType
from staffleave.schemas.actor import Actor, RequestContext
from staffleave.schemas.leave import (
    LeaveBalanceOut,
    LeaveDecisionRequest,
    LeaveStatsOut,
    LeaveSubmissionOut,
    LeaveSubmissionWithUserOut,
    LeaveSubmitRequest,
)
from staffleave.services import entitlement_service, leave_service

router = APIRouter()


@router.get("/balance", response_model=LeaveBalanceOut)
def leave_balance(
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """
    Current user's leave balance for this calendar year.

    Top-level figures are annual leave; medical allotment is under "medical".
    """
    balance = entitlement_service.calculate_leave_balance(
        db, current_actor.id, current_actor.employment_type
    )
    return LeaveBalanceOut(**balance.as_response())


@router.post("", response_model=LeaveSubmissionOut, status_code=201)
def submit_leave_endpoint(
    leave_data: LeaveSubmitRequest,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
    context: RequestContext = Depends(get_request_context),
):
    """
    Submit annual leave or a medical certificate for yourself (creates PENDING request)
    """
    return leave_service.submit_leave(
        db,
        actor=current_actor,
        leave_type=leave_data.type,
        start_date=leave_data.start_date,
        end_date=leave_data.end_date,
        reason=leave_data.reason,
        context=context,
    )


@router.get("/approvals", response_model=List[LeaveSubmissionWithUserOut])
def pending_approvals(
    db: Session = Depends(get_db),
    principal: Actor = Depends(require_principal),
):
    """Pending requests for the principal, oldest first"""
    return leave_service.list_pending(db, principal)


@router.get("/all", response_model=List[LeaveSubmissionWithUserOut])
def all_leaves(
    user_id: Optional[int] = Query(None, alias="teacherId"),
    status: Optional[SubmissionStatus] = Query(None),
    leave_type: Optional[SubmissionType] = Query(None, alias="type"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """
    Leave history. Admins and principals see all staff; others see their own.
    """
    return leave_service.list_leaves(
        db,
        current_actor,
        user_id=user_id,
        status=status,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )


@router.get("/stats", response_model=LeaveStatsOut)
def leave_stats(
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """Leave counts for the admin dashboard"""
    return leave_service.get_leave_stats(db, current_actor)


@router.put("/{submission_id}", response_model=LeaveSubmissionOut)
def decide_leave_endpoint(
    submission_id: int,
    decision: LeaveDecisionRequest,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
    context: RequestContext = Depends(get_request_context),
):
    """
    Approve or reject a pending request (PRINCIPAL only)

    403 without the capability, 404 if absent, 409 if already decided.
    """
    return leave_service.decide_leave(
        db,
        approver=current_actor,
        submission_id=submission_id,
        outcome=decision.outcome,
        note=decision.note,
        context=context,
    )
