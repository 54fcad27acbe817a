"""Audit log model for authentication events."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Column, Index
from sqlmodel import Field, SQLModel

from src.authcore.models.base import JSONType, utc_now
from src.authcore.models.enums import AuditStatus


class AuditLog(SQLModel, table=True):
    """Append-only record of one authentication event.

    Failed login rows double as the brute-force counter, so the
    (email, action, status, created_at) index backs the lockout query.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_lockout", "email", "action", "status", "created_at"),
        Index("ix_audit_logs_user_created", "user_id", "created_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    action: str = Field(max_length=50)  # AuditAction value
    status: str = Field(default=AuditStatus.SUCCESS.value, max_length=20)

    # Subject (any may be unknown, e.g. failed login for an unknown email)
    email: str | None = Field(default=None, max_length=255)
    user_id: UUID | None = Field(default=None)
    tenant_id: str | None = Field(default=None, max_length=255)

    details: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSONType, nullable=True),
    )

    # Request metadata
    ip_address: str | None = Field(default=None, max_length=45)
    user_agent: str | None = Field(default=None, max_length=500)
    request_id: str | None = Field(default=None, max_length=64)  # Correlation ID

    created_at: datetime = Field(default_factory=utc_now)
