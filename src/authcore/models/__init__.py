"""Model exports.

Import from here: `from src.authcore.models import User, RefreshToken`
"""

from src.authcore.models.audit import AuditLog
from src.authcore.models.auth import RefreshToken
from src.authcore.models.base import utc_now
from src.authcore.models.enums import AuditAction, AuditStatus, FailureReason
from src.authcore.models.user import User

__all__ = [
    # Enums
    "AuditAction",
    "AuditStatus",
    "FailureReason",
    # Tables
    "AuditLog",
    "RefreshToken",
    "User",
    # Helpers
    "utc_now",
]
