"""Refresh token storage."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.authcore.models.base import utc_now


class RefreshToken(SQLModel, table=True):
    """Server-side record of an issued refresh token.

    Only the SHA256 hash of the opaque value is stored. Rows are revoked,
    never deleted, so reuse of a consumed token is detectable.
    """

    __tablename__ = "refresh_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    token_hash: str = Field(max_length=255, unique=True, index=True)
    expires_at: datetime
    revoked: bool = Field(default=False)
    revoked_at: datetime | None = Field(default=None)
    user_agent: str | None = Field(default=None, max_length=500)
    ip_address: str | None = Field(default=None, max_length=45)  # IPv4/IPv6
    created_at: datetime = Field(default_factory=utc_now)
