"""Database session dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.authcore.core.db import get_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """Request-scoped session shared by every repository in the request."""
    async with get_session() as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session)]
