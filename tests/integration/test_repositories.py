"""Tests for the repository layer and the schema migration."""

from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.authcore.core.db import run_migrations_sync
from src.authcore.models import AuditAction, RefreshToken, utc_now
from src.authcore.repositories import (
    AuditLogRepository,
    RefreshTokenRepository,
    UserRepository,
)
from tests.factories import AuditLogFactory, RefreshTokenFactory

pytestmark = pytest.mark.integration

PROJECT_ROOT = Path(__file__).resolve().parents[2]


async def test_user_lookups(db_session: AsyncSession, test_user: dict) -> None:
    repo = UserRepository(db_session)
    user = test_user["user"]

    assert await repo.get_by_id(user.id) is user
    assert await repo.get_by_email(user.email) is user
    assert await repo.exists_by_email(user.email) is True
    assert await repo.exists_by_email("missing@example.com") is False
    assert await repo.get_by_email("missing@example.com") is None


async def test_token_lookup_resolves_owner(db_session: AsyncSession, test_user: dict) -> None:
    token = RefreshTokenFactory.build(user_id=test_user["user"].id)
    db_session.add(token)
    await db_session.commit()
    repo = RefreshTokenRepository(db_session)

    found = await repo.get_by_hash_with_user(token.token_hash)

    assert found == (token, test_user["user"])
    assert await repo.get_by_hash_with_user("unknown") is None


async def test_update_fields(db_session: AsyncSession, test_user: dict) -> None:
    token = RefreshTokenFactory.build(user_id=test_user["user"].id)
    db_session.add(token)
    await db_session.commit()
    repo = RefreshTokenRepository(db_session)

    updated = await repo.update_fields(token.id, user_agent="rotated-agent")
    await db_session.commit()
    await db_session.refresh(token)

    assert updated == 1
    assert token.user_agent == "rotated-agent"


async def test_update_fields_skips_rows_failing_conditions(
    db_session: AsyncSession, test_user: dict
) -> None:
    token = RefreshTokenFactory.revoked_token(user_id=test_user["user"].id)
    db_session.add(token)
    await db_session.commit()
    repo = RefreshTokenRepository(db_session)

    updated = await repo.update_fields(
        token.id,
        RefreshToken.revoked == False,  # noqa: E712
        user_agent="never-written",
    )

    assert updated == 0
    assert await repo.revoke_if_active(token.id) is False


async def test_active_hashes_skip_revoked_and_expired(
    db_session: AsyncSession, test_user: dict
) -> None:
    user_id = test_user["user"].id
    live = RefreshTokenFactory.build(user_id=user_id)
    db_session.add_all(
        [
            live,
            RefreshTokenFactory.revoked_token(user_id=user_id),
            RefreshTokenFactory.expired(user_id=user_id),
        ]
    )
    await db_session.commit()
    repo = RefreshTokenRepository(db_session)

    active = await repo.get_active_hashes_for_user(user_id)

    assert [token_hash for token_hash, _ in active] == [live.token_hash]
    # Expired but unrevoked rows are still revoked in bulk
    assert await repo.revoke_all_for_user(user_id) == 2
    assert await repo.revoke_all_for_user(user_id) == 0


async def test_count_failures_since(db_session: AsyncSession) -> None:
    email = "counted@example.com"
    now = utc_now()
    db_session.add_all(
        [
            AuditLogFactory.failed_login(email, created_at=now - timedelta(minutes=1)),
            AuditLogFactory.failed_login(email, created_at=now - timedelta(minutes=30)),
            AuditLogFactory.build(email=email, created_at=now),
            AuditLogFactory.failed_login("other@example.com", created_at=now),
        ]
    )
    await db_session.commit()
    repo = AuditLogRepository(db_session)

    count = await repo.count_failures_since(
        email=email, action=AuditAction.LOGIN.value, since=now - timedelta(minutes=15)
    )

    assert count == 1


def test_migrations_apply_cleanly(monkeypatch: pytest.MonkeyPatch) -> None:
    """Upgrade head against a throwaway in-memory SQLite database."""
    monkeypatch.chdir(PROJECT_ROOT)
    run_migrations_sync()
