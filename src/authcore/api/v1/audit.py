"""Audit log endpoints - super-admin only."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.authcore.api.dependencies import AuditServiceDep, SuperAdmin
from src.authcore.models import AuditStatus
from src.authcore.schemas.audit import AuditLogListResponse, AuditLogRead

router = APIRouter(prefix="/audit", tags=["audit"])

CursorQuery = Annotated[str | None, Query(description="Pagination cursor")]
LimitQuery = Annotated[int, Query(ge=1, le=100, description="Items per page")]
EmailQuery = Annotated[str | None, Query(description="Filter by subject email")]
ActionQuery = Annotated[str | None, Query(description="Filter by action (login, register)")]
StatusQuery = Annotated[AuditStatus | None, Query(description="Filter by outcome")]
UserIdQuery = Annotated[UUID | None, Query(description="Filter by user ID")]


@router.get(
    "/logs",
    response_model=AuditLogListResponse,
    responses={
        200: {
            "description": "List of audit logs, newest first",
            "content": {
                "application/json": {
                    "example": {
                        "items": [
                            {
                                "id": "550e8400-e29b-41d4-a716-446655440000",
                                "action": "login",
                                "status": "failure",
                                "email": "user@example.com",
                                "user_id": None,
                                "tenant_id": None,
                                "details": {"reason": "invalid_credentials"},
                                "ip_address": "192.168.1.1",
                                "user_agent": "Mozilla/5.0...",
                                "request_id": "abc-123",
                                "created_at": "2025-01-01T00:00:00",
                            }
                        ],
                        "next_cursor": "abc123",
                        "has_more": True,
                    }
                }
            },
        },
        401: {"description": "Not authenticated"},
        403: {"description": "Super admin access required"},
    },
)
async def list_audit_logs(
    _: SuperAdmin,
    audit_service: AuditServiceDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = 50,
    email: EmailQuery = None,
    action: ActionQuery = None,
    status: StatusQuery = None,
    user_id: UserIdQuery = None,
) -> AuditLogListResponse:
    logs, next_cursor, has_more = await audit_service.list_logs(
        cursor=cursor,
        limit=limit,
        email=email.strip().lower() if email else None,
        action=action,
        status=status.value if status else None,
        user_id=user_id,
    )

    return AuditLogListResponse(
        items=[AuditLogRead.model_validate(log) for log in logs],
        next_cursor=next_cursor,
        has_more=has_more,
    )
