"""
Audit log schemas
"""
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from staffleave.utils.datetime_utils import iso_local


class AuditLogOut(BaseModel):
    id: int
    action: str
    entity_id: str = Field(..., serialization_alias="entityId")
    entity_type: str = Field(..., serialization_alias="entityType")
    actor_id: str = Field(..., serialization_alias="actorId")
    actor_name: Optional[str] = Field(None, serialization_alias="actorName")
    actor_role: Optional[str] = Field(None, serialization_alias="actorRole")
    ip_address: Optional[str] = Field(None, serialization_alias="ipAddress")
    user_agent: Optional[str] = Field(None, serialization_alias="userAgent")
    details: Optional[Any] = None
    status: str
    created_at: datetime = Field(..., serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at")
    def _ser_created_at(self, dt: datetime) -> str:
        return iso_local(dt)


class Pagination(BaseModel):
    total: int
    pages: int
    page: int
    limit: int


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogOut]
    pagination: Pagination
