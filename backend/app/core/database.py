"""Async engine, session factory and declarative base."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings
from app.core.errors import PartialWriteError


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


engine = create_async_engine(settings.DATABASE_URL, future=True)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""
    async with async_session_maker() as session:
        yield session


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything written inside the block, or roll all of it back.

    Joins the session's current (possibly autobegun) transaction, so reads
    done earlier in the request belong to the same unit of work.
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        try:
            await session.rollback()
        except SQLAlchemyError as e:
            raise PartialWriteError("Rollback failed; persisted state is unknown") from e
        raise


def utcnow() -> datetime:
    """Timezone-aware UTC now, used for column defaults."""
    return datetime.now(timezone.utc)
