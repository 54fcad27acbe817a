"""Service factory dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.authcore.api.dependencies.db import DBSession
from src.authcore.api.dependencies.repositories import TokenRepo, UserRepo
from src.authcore.core.config import get_settings
from src.authcore.core.db.engine import get_engine
from src.authcore.repositories import AuditLogRepository
from src.authcore.services.audit_service import AuditService
from src.authcore.services.auth_service import AuthService
from src.authcore.services.token_service import TokenIssuer


async def get_audit_service() -> AsyncGenerator[AuditService]:
    """Get audit service with its own isolated session.

    The dedicated session commits independently, so audit entries are kept
    even if the business transaction rolls back.
    """
    settings = get_settings()
    async with AsyncSession(get_engine(), expire_on_commit=False) as session:
        yield AuditService(
            AuditLogRepository(session),
            session,
            fail_open=settings.audit_fail_open,
        )


def get_token_issuer(token_repo: TokenRepo, session: DBSession) -> TokenIssuer:
    return TokenIssuer(token_repo, session)


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
TokenIssuerDep = Annotated[TokenIssuer, Depends(get_token_issuer)]


def get_auth_service(
    user_repo: UserRepo,
    token_repo: TokenRepo,
    audit: AuditServiceDep,
    issuer: TokenIssuerDep,
    session: DBSession,
) -> AuthService:
    return AuthService(user_repo, token_repo, audit, issuer, session)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
