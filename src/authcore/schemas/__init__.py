"""Request/response schemas."""

from src.authcore.schemas.audit import AuditLogListResponse, AuditLogRead
from src.authcore.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPayload,
)
from src.authcore.schemas.pagination import CursorPage, decode_cursor, encode_cursor
from src.authcore.schemas.user import UserSummary

__all__ = [
    "AuditLogListResponse",
    "AuditLogRead",
    "CursorPage",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "RefreshRequest",
    "RegisterRequest",
    "TokenPayload",
    "UserSummary",
    "decode_cursor",
    "encode_cursor",
]
