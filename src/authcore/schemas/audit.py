"""Audit log schemas for API responses."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.authcore.schemas.pagination import CursorPage


class AuditLogRead(BaseModel):
    """Audit log entry for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: str
    status: str
    email: str | None
    user_id: UUID | None
    tenant_id: str | None
    details: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    request_id: str | None
    created_at: datetime


AuditLogListResponse = CursorPage[AuditLogRead]
