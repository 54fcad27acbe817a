from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator
from zxcvbn import zxcvbn

from src.authcore.schemas.user import UserSummary

# Minimum zxcvbn score (0-4 scale): 3 = "safely unguessable"
MIN_PASSWORD_SCORE = 3


class TokenPayload(BaseModel):
    """Claims carried by an access token."""

    sub: UUID
    email: str
    tenant_id: str | None = None
    roles: list[str] = Field(default_factory=list)
    is_super_admin: bool = False

    def to_claims(self) -> dict[str, object]:
        return self.model_dump(mode="json")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=100)
    tenant_id: str | None = Field(default=None, max_length=255)


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserSummary


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=255)


class RegisterRequest(BaseModel):
    """Super-admin creates a user, optionally bound to a tenant."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=100)
    tenant_id: str | None = Field(default=None, max_length=255)
    roles: list[str] = Field(default_factory=list)
    is_super_admin: bool = False

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        """Validate password strength using zxcvbn entropy estimation."""
        result = zxcvbn(v)
        if result["score"] < MIN_PASSWORD_SCORE:
            feedback = result.get("feedback", {})
            warning = feedback.get("warning", "")
            suggestions = feedback.get("suggestions", [])

            if warning:
                raise ValueError(f"Weak password: {warning}")
            elif suggestions:
                raise ValueError(f"Weak password: {suggestions[0]}")
            else:
                raise ValueError(
                    "Password is too weak. Use a longer password with a mix of characters."
                )

        return v


class LogoutResponse(BaseModel):
    message: str = "Logged out successfully"
    revoked: int
