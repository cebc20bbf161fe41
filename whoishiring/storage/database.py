"""
SQLAlchemy async engine and session utilities.

The engine and session factory are created explicitly and handed to the
repository, so nothing in the package relies on module-level database state.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Tuple

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from whoishiring.config import DatabaseConfig
from whoishiring.models.story import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SEC = 20


def _engine_kwargs(db_config: DatabaseConfig) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"echo": db_config.echo}

    if db_config.is_sqlite:
        # sqlite3 turns the connect timeout into the busy timeout of every connection
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SEC}
        if ":memory:" in db_config.url:
            # A single shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
            return kwargs

    kwargs.update(
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_recycle=db_config.pool_recycle,
        pool_pre_ping=True,
    )
    return kwargs


def create_session_factory(
    db_config: DatabaseConfig,
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Create the async engine and its session factory.

    Args:
        db_config: Database configuration

    Returns:
        Tuple of (engine, session factory)
    """
    engine = create_async_engine(db_config.url, **_engine_kwargs(db_config))

    if db_config.is_sqlite:

        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn: Any, _connection_record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.info(f"Created database engine for {engine.url.render_as_string(hide_password=True)}")
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
    read_only: bool = False,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a session that is committed on success, rolled back on error and always closed.

    Args:
        session_factory: Factory returned by ``create_session_factory``
        read_only: Skip the commit for pure reads
    """
    async with session_factory() as session:
        try:
            yield session
            if not read_only:
                await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(engine: AsyncEngine) -> None:
    """
    Create the hiring_story and hiring_job tables if they do not exist.

    Existing tables are left untouched.
    """
    logger.info("Creating database schema (existing tables are kept)")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


async def check_connection(engine: AsyncEngine) -> bool:
    """Run ``SELECT 1`` against the engine, returning False on any failure."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection test failed: {str(e)}")
        return False
