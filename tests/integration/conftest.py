"""Integration test fixtures for database and HTTP client operations.

Every test gets a fresh in-memory SQLite database: the engine fixture
creates the schema and disposes the engine afterwards.
Uses polyfactory for type-safe test data generation.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import SQLModel

import src.authcore.models  # noqa: F401 - registers tables on SQLModel.metadata
from src.authcore.core import db
from src.authcore.core import redis as redis_core
from src.authcore.core.audit_context import clear_audit_context
from src.authcore.core.health import reset_health_cache
from src.authcore.core.security import create_access_token
from src.authcore.core.shutdown import request_tracker
from src.authcore.main import create_app
from src.authcore.models import User
from src.authcore.repositories import (
    AuditLogRepository,
    RefreshTokenRepository,
    UserRepository,
)
from src.authcore.schemas.auth import TokenPayload
from src.authcore.services import AuditService, AuthService, TokenIssuer
from tests.factories import DEFAULT_TEST_PASSWORD, UserFactory


@pytest.fixture(autouse=True)
async def _reset_state_between_tests() -> AsyncGenerator[None]:
    """Reset process-wide state between tests.

    Redis clients hold references to their event loop, and health results
    and the request tracker are module-level singletons.
    """
    redis_core.reset_redis_state()
    reset_health_cache()
    request_tracker.reset()
    clear_audit_context()
    yield
    await redis_core.close_redis()
    reset_health_cache()
    request_tracker.reset()


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create the application engine and its tables."""
    await db.dispose_engine()
    test_engine = db.get_engine()

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await db.dispose_engine()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for database operations.

    Tests must call `await session.commit()` to persist changes.
    """
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def audit_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Separate session for the audit service, as the app wires it."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def audit_service(audit_session: AsyncSession) -> AuditService:
    return AuditService(AuditLogRepository(audit_session), audit_session)


@pytest.fixture
def auth_service(db_session: AsyncSession, audit_service: AuditService) -> AuthService:
    """AuthService over real repositories and the test database."""
    token_repo = RefreshTokenRepository(db_session)
    return AuthService(
        UserRepository(db_session),
        token_repo,
        audit_service,
        TokenIssuer(token_repo, db_session),
        db_session,
    )


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Any]:
    """Persist a user built by UserFactory. Keyword args override fields."""

    async def _make_user(factory_method: str = "build", **kwargs: Any) -> User:
        user = getattr(UserFactory, factory_method)(**kwargs)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
async def test_user(make_user: Callable[..., Any]) -> dict[str, Any]:
    """An active member of tenant "acme"."""
    user = await make_user()
    return {
        "id": str(user.id),
        "email": user.email,
        "password": DEFAULT_TEST_PASSWORD,
        "tenant_id": user.tenant_id,
        "user": user,
    }


@pytest.fixture
async def test_super_admin(make_user: Callable[..., Any]) -> dict[str, Any]:
    """A global super-admin."""
    user = await make_user("super_admin")
    return {
        "id": str(user.id),
        "email": user.email,
        "password": DEFAULT_TEST_PASSWORD,
        "user": user,
    }


def access_token_for(user: User, tenant_id: str | None = None) -> str:
    """Mint an access token for a stored user without going through login."""
    payload = TokenPayload(
        sub=user.id,
        email=user.email,
        tenant_id=tenant_id if tenant_id is not None else user.tenant_id,
        roles=list(user.roles),
        is_super_admin=user.is_super_admin,
    )
    return create_access_token(payload.to_claims())


@pytest.fixture
def super_admin_headers(test_super_admin: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token_for(test_super_admin['user'])}"}


@pytest.fixture
def user_headers(test_user: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token_for(test_user['user'])}"}


@pytest.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient]:
    """HTTP client against a fresh app bound to the test database."""
    app = create_app()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
