"""Authentication service - login, refresh token rotation, registration, logout."""

from dataclasses import dataclass
from datetime import datetime
from typing import NoReturn
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.authcore.core.cache import is_token_revoked, mark_token_revoked, mark_tokens_revoked
from src.authcore.core.config import Settings, get_settings
from src.authcore.core.exceptions import (
    AccountInactiveError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    RateLimitedError,
    TenantAccessDeniedError,
)
from src.authcore.core.logging import get_logger
from src.authcore.core.security import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    hash_token,
    verify_password,
)
from src.authcore.models import AuditAction, FailureReason, User, utc_now
from src.authcore.repositories import RefreshTokenRepository, UserRepository
from src.authcore.schemas.auth import TokenPayload
from src.authcore.schemas.user import UserSummary
from src.authcore.services.audit_service import AuditService
from src.authcore.services.token_service import TokenIssuer


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _seconds_until(expires_at: datetime) -> int:
    return int((expires_at - utc_now()).total_seconds())


def _summary_for(user: User, payload: TokenPayload) -> UserSummary:
    # Reports the tenant the token was issued for, not the stored one
    return UserSummary(
        id=payload.sub,
        email=payload.email,
        tenant_id=payload.tenant_id,
        roles=list(payload.roles),
        is_super_admin=user.is_super_admin,
    )


@dataclass(frozen=True)
class AuthResult:
    access_token: str
    refresh_token: str
    user: UserSummary


class AuthService:
    """Orchestrates the auth flows over the user store, token issuer and audit log.

    Every failure is raised as an AuthError subclass. Login failures are
    audited before raising; refresh failures are not.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        token_repo: RefreshTokenRepository,
        audit: AuditService,
        issuer: TokenIssuer,
        session: AsyncSession,
        *,
        settings: Settings | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ):
        self.user_repo = user_repo
        self.token_repo = token_repo
        self.audit = audit
        self.issuer = issuer
        self.session = session
        self.settings = settings or get_settings()
        self.logger = logger or get_logger(__name__)

    async def login(
        self,
        email: str,
        password: str,
        tenant_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthResult:
        """Authenticate credentials and issue a token pair.

        Checks, in order:
        1. Recent failed attempts for the email are below the lockout threshold
        2. User exists and the password matches
        3. User is active
        4. A requested tenant matches the user's own (super-admins skip this)

        Raises:
            RateLimitedError, InvalidCredentialsError, AccountInactiveError,
            TenantAccessDeniedError
        """
        email = normalize_email(email)
        request_meta = {"ip_address": ip_address, "user_agent": user_agent}

        # 1. Lockout runs before credentials are checked, so unknown emails lock too
        failed_attempts = await self.audit.get_recent_failed_attempts(
            email, self.settings.login_lockout_window_minutes
        )
        if failed_attempts >= self.settings.login_max_failed_attempts:
            await self.audit.log_failure(
                AuditAction.LOGIN,
                FailureReason.TOO_MANY_ATTEMPTS,
                email=email,
                **request_meta,
            )
            self.logger.warning("Login locked out", failed_attempts=failed_attempts)
            raise RateLimitedError()

        # 2. Always verify a hash so response time doesn't reveal unknown emails
        user = await self.user_repo.get_by_email(email)
        password_hash = user.hashed_password if user else DUMMY_PASSWORD_HASH
        password_valid = verify_password(password, password_hash)

        if user is None or not password_valid:
            await self.audit.log_failure(
                AuditAction.LOGIN,
                FailureReason.INVALID_CREDENTIALS,
                email=email,
                **request_meta,
            )
            raise InvalidCredentialsError()

        # 3.
        if not user.is_active:
            await self.audit.log_failure(
                AuditAction.LOGIN,
                FailureReason.ACCOUNT_INACTIVE,
                email=email,
                user_id=user.id,
                **request_meta,
            )
            raise AccountInactiveError()

        # 4.
        if not user.is_super_admin and tenant_id and tenant_id != user.tenant_id:
            await self.audit.log_failure(
                AuditAction.LOGIN,
                FailureReason.TENANT_ACCESS_DENIED,
                details={"attempted_tenant": tenant_id},
                email=email,
                user_id=user.id,
                **request_meta,
            )
            raise TenantAccessDeniedError()

        payload = self._build_payload(user, tenant_id or user.tenant_id)
        tokens = await self.issuer.issue(payload, ip_address, user_agent)

        await self.audit.log_success(
            AuditAction.LOGIN,
            email=user.email,
            user_id=user.id,
            tenant_id=payload.tenant_id,
            **request_meta,
        )
        self.logger.info("Login succeeded", user_id=str(user.id), tenant_id=payload.tenant_id)

        return AuthResult(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            user=_summary_for(user, payload),
        )

    async def refresh(
        self,
        token_value: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthResult:
        """Consume a refresh token and issue a new pair (rotation).

        The consumed token is revoked and committed before the new pair is
        issued. The tenant binding comes from the stored user, never from the
        previous access token.

        Raises:
            InvalidRefreshTokenError: Unknown, revoked, expired, or lost a
                concurrent consumption race.
            AccountInactiveError: Owner has been deactivated.
        """
        token_hash = hash_token(token_value)

        # Fast path: a cache hit is authoritative for "revoked"; a miss defers to the DB
        if await self._cached_revoked(token_hash):
            raise InvalidRefreshTokenError()

        found = await self.token_repo.get_by_hash_with_user(token_hash)
        if found is None:
            raise InvalidRefreshTokenError()

        db_token, user = found
        if db_token.revoked or db_token.expires_at < utc_now():
            raise InvalidRefreshTokenError()

        if not user.is_active:
            raise AccountInactiveError()

        try:
            won = await self.token_repo.revoke_if_active(db_token.id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if not won:
            self.logger.warning("Refresh token consumed concurrently", token_id=str(db_token.id))
            raise InvalidRefreshTokenError()

        await self._cache_revoked(token_hash, db_token.expires_at)

        payload = self._build_payload(user, user.tenant_id)
        tokens = await self.issuer.issue(payload, ip_address, user_agent)

        return AuthResult(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            user=_summary_for(user, payload),
        )

    async def register(
        self,
        email: str,
        password: str,
        tenant_id: str | None = None,
        roles: list[str] | None = None,
        is_super_admin: bool = False,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> UserSummary:
        """Create a user. Callers must already be authorized as super-admin.

        The existence check is only a fast path: a concurrent registration of
        the same email that slips past it is caught by the unique email index
        at commit and reported the same way.

        Raises:
            DuplicateEmailError: A user with this email exists.
        """
        email = normalize_email(email)
        request_meta = {"ip_address": ip_address, "user_agent": user_agent}

        if await self.user_repo.exists_by_email(email):
            await self._reject_duplicate(email, request_meta)

        user = User(
            email=email,
            hashed_password=hash_password(password),
            tenant_id=tenant_id,
            roles=list(roles or []),
            is_super_admin=is_super_admin,
        )
        try:
            self.user_repo.add(user)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            self.logger.warning("Concurrent registration lost", error=str(e.orig))
            await self._reject_duplicate(email, request_meta, cause=e)
        except Exception:
            await self.session.rollback()
            raise

        await self.audit.log_success(
            AuditAction.REGISTER,
            email=user.email,
            user_id=user.id,
            tenant_id=user.tenant_id,
            **request_meta,
        )
        self.logger.info("User registered", user_id=str(user.id), tenant_id=user.tenant_id)

        return UserSummary.model_validate(user)

    async def logout(self, user_id: UUID) -> int:
        """Revoke every refresh token of the user. Idempotent, returns the count."""
        count = await self.revoke_all_user_tokens(user_id)
        self.logger.info("User logged out", user_id=str(user_id), revoked=count)
        return count

    async def revoke_all_user_tokens(self, user_id: UUID) -> int:
        """Revoke all unrevoked refresh tokens for a user.

        Use cases:
        - Logout
        - Account compromise or deactivation handled by an admin

        Returns the number of tokens revoked; 0 on a repeated call.
        """
        try:
            # Read hashes before revoking so the cache can be primed afterwards
            active = await self.token_repo.get_active_hashes_for_user(user_id)
            count = await self.token_repo.revoke_all_for_user(user_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if active:
            try:
                await mark_tokens_revoked(
                    [(token_hash, _seconds_until(expires_at)) for token_hash, expires_at in active]
                )
            except Exception as e:
                # DB is committed and authoritative
                self.logger.warning(
                    "Failed to cache revoked tokens",
                    error=str(e),
                    token_count=len(active),
                )

        return count

    async def _reject_duplicate(
        self,
        email: str,
        request_meta: dict[str, str | None],
        cause: Exception | None = None,
    ) -> NoReturn:
        await self.audit.log_failure(
            AuditAction.REGISTER,
            FailureReason.EMAIL_ALREADY_REGISTERED,
            email=email,
            **request_meta,
        )
        raise DuplicateEmailError() from cause

    def _build_payload(self, user: User, tenant_id: str | None) -> TokenPayload:
        return TokenPayload(
            sub=user.id,
            email=user.email,
            tenant_id=tenant_id,
            roles=list(user.roles or []),
            is_super_admin=user.is_super_admin,
        )

    async def _cached_revoked(self, token_hash: str) -> bool:
        try:
            return await is_token_revoked(token_hash) is True
        except Exception as e:
            self.logger.warning("Revocation cache lookup failed", error=str(e))
            return False

    async def _cache_revoked(self, token_hash: str, expires_at: datetime) -> None:
        try:
            await mark_token_revoked(token_hash, _seconds_until(expires_at))
        except Exception as e:
            # DB is committed and authoritative
            self.logger.warning("Failed to cache revoked token", error=str(e))
