"""User model - the credential record authenticated by this service."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from src.authcore.models.base import JSONType, utc_now


class User(SQLModel, table=True):
    """A principal that can log in.

    ``tenant_id`` of None marks a global user bound to no tenant. Only
    super-admins may request a tenant other than their own at login.
    Users are deactivated through ``is_active``, never deleted here.
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    hashed_password: str = Field(max_length=255)
    tenant_id: str | None = Field(default=None, max_length=255, index=True)
    is_active: bool = Field(default=True)
    is_super_admin: bool = Field(default=False)
    roles: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSONType, nullable=False),
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
