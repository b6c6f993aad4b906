"""Persistence gateway: engine, sessions, and the unit-of-work helper."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from gymcoach.config import settings
from gymcoach.core.errors import Conflict, PersistenceError

logger = logging.getLogger("gymcoach.db")

engine = create_async_engine(settings.database_url, echo=settings.database_echo)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, committed when the handler succeeds."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def atomic(
    db: AsyncSession,
    *,
    conflict_detail: str | None = None,
    conflict_code: str = "concurrent_update",
) -> AsyncIterator[AsyncSession]:
    """Run a multi-statement write as one unit.

    Pending writes are flushed on exit. A database failure rolls the whole
    session back so nothing from the block stays visible. Integrity errors
    become Conflict (tagged with `conflict_code`) when `conflict_detail` is
    given, PersistenceError otherwise.
    """
    try:
        yield db
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if conflict_detail is not None:
            logger.warning("Integrity conflict rolled back: %s", conflict_detail)
            raise Conflict(conflict_detail, code=conflict_code) from exc
        logger.exception("Integrity error rolled back")
        raise PersistenceError("Database constraint violated") from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Database error rolled back")
        raise PersistenceError("Database operation failed") from exc
