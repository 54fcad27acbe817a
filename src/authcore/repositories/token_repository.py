"""Repository for RefreshToken entity."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, update
from sqlmodel import select

from src.authcore.models import RefreshToken, User, utc_now
from src.authcore.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    model = RefreshToken

    async def get_by_hash_with_user(self, token_hash: str) -> tuple[RefreshToken, User] | None:
        """Get a refresh token by its hash together with its owner.

        Revoked and expired rows are returned too; the caller decides validity.
        """
        result = await self.session.execute(
            select(RefreshToken, User)
            .join(User, User.id == RefreshToken.user_id)  # type: ignore[arg-type]
            .where(RefreshToken.token_hash == token_hash)
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def update_fields(
        self, token_id: UUID, *conditions: ColumnElement[bool], **fields: Any
    ) -> int:
        """Set columns on one token, optionally only where ``conditions`` hold.

        Returns rows updated, so a conditional update doubles as a compare-and-swap.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, *conditions)  # type: ignore[arg-type]
            .values(**fields)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def revoke_if_active(self, token_id: UUID) -> bool:
        """Revoke a token only if it is still unrevoked.

        Two concurrent consumers can't both win: exactly one of them sees a
        row count of 1.
        """
        updated = await self.update_fields(
            token_id,
            RefreshToken.revoked == False,  # type: ignore[arg-type]  # noqa: E712
            revoked=True,
            revoked_at=utc_now(),
        )
        return updated == 1

    async def get_active_hashes_for_user(self, user_id: UUID) -> list[tuple[str, datetime]]:
        """Get (token_hash, expires_at) for every live token of a user.

        Used to push bulk revocations into the Redis cache with proper TTLs.
        """
        result = await self.session.execute(
            select(RefreshToken.token_hash, RefreshToken.expires_at).where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked == False,  # noqa: E712
                RefreshToken.expires_at > utc_now(),
            )
        )
        return [(token_hash, expires_at) for token_hash, expires_at in result.all()]

    async def revoke_all_for_user(self, user_id: UUID) -> int:
        """Revoke every unrevoked refresh token of a user.

        Returns the number of tokens revoked, 0 when there were none.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id)  # type: ignore[arg-type]
            .where(RefreshToken.revoked == False)  # type: ignore[arg-type]  # noqa: E712
            .values(revoked=True, revoked_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]
