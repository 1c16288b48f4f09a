"""Async engine and session factory.

Each store receives the session maker and opens one short-lived session per
operation; there is no request-spanning session.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

# Importing the table module registers every table on SQLModel.metadata
from feedback_bot.storage import tables  # noqa: F401


def create_engine(database_url: str) -> AsyncEngine:
    """Create the async engine. Postgres in production, SQLite in tests."""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=False, future=True)
    return create_async_engine(
        database_url,
        echo=False,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Detects stale connections before use
        pool_recycle=300,
    )


def create_session_maker(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(  # type: ignore[call-overload]
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
