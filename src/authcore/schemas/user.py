from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserSummary(BaseModel):
    """Minimal user view returned by login, refresh and register.

    Never carries the password hash.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    tenant_id: str | None
    roles: list[str]
    is_super_admin: bool
