"""Repository layer - data access abstraction."""

from src.authcore.repositories.audit_repository import AuditLogRepository
from src.authcore.repositories.base import BaseRepository
from src.authcore.repositories.token_repository import RefreshTokenRepository
from src.authcore.repositories.user_repository import UserRepository

__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
