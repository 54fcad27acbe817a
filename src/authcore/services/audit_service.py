"""Audit logging service - records authentication events and answers lockout queries."""

import contextlib
from datetime import timedelta
from enum import Enum
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.authcore.core.audit_context import get_audit_context
from src.authcore.core.logging import get_logger
from src.authcore.models import AuditAction, AuditLog, AuditStatus, FailureReason, utc_now
from src.authcore.repositories import AuditLogRepository

ERROR_MESSAGE_MAX_LENGTH = 1000


def _value(item: AuditAction | AuditStatus | FailureReason | str) -> str:
    return item.value if isinstance(item, Enum) else item


class AuditService:
    """Service for recording audit logs.

    Uses its own session so entries survive a rollback of the business
    transaction. Whether a failed write aborts the caller is decided by
    ``fail_open``: False propagates the error, True logs and swallows it.
    """

    def __init__(
        self,
        audit_repo: AuditLogRepository,
        session: AsyncSession,
        *,
        fail_open: bool = False,
        logger: structlog.stdlib.BoundLogger | None = None,
    ):
        self.audit_repo = audit_repo
        self.session = session
        self.fail_open = fail_open
        self.logger = logger or get_logger(__name__)

    async def log(
        self,
        action: AuditAction | str,
        status: AuditStatus | str,
        email: str | None = None,
        user_id: UUID | None = None,
        tenant_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLog | None:
        """Append one audit entry and commit.

        IP address and user agent default to the request audit context when not
        passed; the request id always comes from it.

        Returns:
            The created AuditLog, or None if the write failed in fail-open mode
        """
        ctx = get_audit_context()
        entry = AuditLog(
            action=_value(action),
            status=_value(status),
            email=email,
            user_id=user_id,
            tenant_id=tenant_id,
            ip_address=ip_address if ip_address is not None else (ctx.ip_address if ctx else None),
            user_agent=user_agent if user_agent is not None else (ctx.user_agent if ctx else None),
            request_id=ctx.request_id if ctx else None,
            details=details,
        )

        try:
            self.audit_repo.add(entry)
            await self.session.commit()
        except Exception as e:
            with contextlib.suppress(Exception):
                await self.session.rollback()
            if not self.fail_open:
                self.logger.error(
                    "Failed to record audit log",
                    action=entry.action,
                    status=entry.status,
                    error=str(e)[:ERROR_MESSAGE_MAX_LENGTH],
                )
                raise
            self.logger.warning(
                "Failed to record audit log, continuing",
                action=entry.action,
                status=entry.status,
                error=str(e)[:ERROR_MESSAGE_MAX_LENGTH],
            )
            return None

        self.logger.debug(
            "Audit log recorded",
            action=entry.action,
            status=entry.status,
            user_id=str(user_id) if user_id else None,
        )
        return entry

    async def log_success(self, action: AuditAction | str, **kwargs: Any) -> AuditLog | None:
        return await self.log(action, AuditStatus.SUCCESS, **kwargs)

    async def log_failure(
        self,
        action: AuditAction | str,
        reason: FailureReason | str,
        *,
        details: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> AuditLog | None:
        """Record a failed event; ``reason`` lands in details next to any extras."""
        return await self.log(
            action,
            AuditStatus.FAILURE,
            details={"reason": _value(reason), **(details or {})},
            **kwargs,
        )

    async def get_recent_failed_attempts(self, email: str, window_minutes: int = 15) -> int:
        """Count failed login entries for an email within the trailing window.

        Recomputed from the stored rows on every call, nothing is cached.
        """
        since = utc_now() - timedelta(minutes=window_minutes)
        return await self.audit_repo.count_failures_since(
            email=email,
            action=AuditAction.LOGIN.value,
            since=since,
        )

    async def list_logs(
        self,
        cursor: str | None = None,
        limit: int = 50,
        email: str | None = None,
        action: str | None = None,
        status: str | None = None,
        user_id: UUID | None = None,
    ) -> tuple[list[AuditLog], str | None, bool]:
        return await self.audit_repo.list_logs(
            cursor=cursor,
            limit=limit,
            email=email,
            action=action,
            status=status,
            user_id=user_id,
        )
