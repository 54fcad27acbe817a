"""Repository for AuditLog entity."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select

from src.authcore.models import AuditLog, AuditStatus
from src.authcore.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    model = AuditLog

    async def count_failures_since(self, email: str, action: str, since: datetime) -> int:
        """Count failed entries for an email and action created at or after ``since``."""
        result = await self.session.execute(
            select(func.count())
            .select_from(AuditLog)
            .where(
                AuditLog.email == email,
                AuditLog.action == action,
                AuditLog.status == AuditStatus.FAILURE.value,
                AuditLog.created_at >= since,
            )
        )
        return result.scalar_one() or 0

    async def list_logs(
        self,
        cursor: str | None = None,
        limit: int = 50,
        email: str | None = None,
        action: str | None = None,
        status: str | None = None,
        user_id: UUID | None = None,
    ) -> tuple[list[AuditLog], str | None, bool]:
        """List audit logs with optional filters and cursor pagination.

        Returns:
            Tuple of (logs, next_cursor, has_more)
        """
        query = select(AuditLog)

        if email:
            query = query.where(AuditLog.email == email)
        if action:
            query = query.where(AuditLog.action == action)
        if status:
            query = query.where(AuditLog.status == status)
        if user_id:
            query = query.where(AuditLog.user_id == user_id)

        return await self.paginate(query, cursor, limit, AuditLog.created_at)
