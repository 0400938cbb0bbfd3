"""
Health check endpoint
"""
from fastapi import APIRouter
from staffleave.core.constants import SERVICE_NAME
from staffleave.services.audit_service import get_audit_failure_count

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint

    audit_failures counts audit entries that could not be persisted since start.
    """
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "audit_failures": get_audit_failure_count(),
    }
