"""Request-scoped async sessions and repositories."""

from typing import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.storage.database import get_async_session_factory
from mwarex.storage.repositories import FeedbackRepository


async def get_async_db_session() -> AsyncIterator[AsyncSession]:
    """One session per request.

    Routes commit explicitly before scheduling background work; anything left
    uncommitted when the handler returns is committed here, and an exception
    rolls the whole request back.
    """
    async with get_async_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_feedback_repo(
    session: AsyncSession = Depends(get_async_db_session),
) -> FeedbackRepository:
    return FeedbackRepository(session)
