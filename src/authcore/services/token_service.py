"""Token issuing and access-token verification."""

from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.authcore.core.audit_context import USER_AGENT_MAX_LENGTH
from src.authcore.core.config import Settings, get_settings
from src.authcore.core.exceptions import InvalidTokenError
from src.authcore.core.logging import get_logger
from src.authcore.core.security import (
    ACCESS_TOKEN_TYPE,
    create_access_token,
    decode_token,
    generate_refresh_token,
    hash_token,
)
from src.authcore.models import RefreshToken, utc_now
from src.authcore.repositories import RefreshTokenRepository
from src.authcore.schemas.auth import TokenPayload


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


class TokenIssuer:
    """Signs access tokens and persists opaque refresh tokens.

    The refresh value handed to the client is random; only its SHA256 hash is
    stored, so a database leak does not yield usable tokens.
    """

    def __init__(
        self,
        token_repo: RefreshTokenRepository,
        session: AsyncSession,
        *,
        settings: Settings | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ):
        self.token_repo = token_repo
        self.session = session
        self.settings = settings or get_settings()
        self.logger = logger or get_logger(__name__)

    async def issue(
        self,
        payload: TokenPayload,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> IssuedTokens:
        """Create an access/refresh pair for the payload and store the refresh token."""
        access_token = create_access_token(
            payload.to_claims(),
            timedelta(minutes=self.settings.access_token_expire_minutes),
        )
        refresh_token = generate_refresh_token()
        expires_at = utc_now() + timedelta(days=self.settings.refresh_token_expire_days)

        db_token = RefreshToken(
            user_id=payload.sub,
            token_hash=hash_token(refresh_token),
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else user_agent,
        )
        try:
            self.token_repo.add(db_token)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        self.logger.debug(
            "Refresh token issued", user_id=str(payload.sub), token_id=str(db_token.id)
        )
        return IssuedTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            refresh_expires_at=expires_at,
        )

    def verify(self, access_token: str) -> TokenPayload:
        """Decode an access token.

        Raises:
            InvalidTokenError: Bad signature, expired, not an access token, or
                claims that don't form a TokenPayload.
        """
        claims = decode_token(access_token)
        if claims is None:
            raise InvalidTokenError()
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError()
        try:
            return TokenPayload.model_validate(claims)
        except ValidationError as e:
            raise InvalidTokenError() from e
