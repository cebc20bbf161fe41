"""Tests for the engine and session helpers on SQLite."""

import pytest
from sqlalchemy import text

from whoishiring.storage.database import (
    SQLITE_BUSY_TIMEOUT_SEC,
    check_connection,
    create_session_factory,
)


class TestSqliteEngine:
    """Connection settings applied to every pooled SQLite connection."""

    @pytest.mark.asyncio
    async def test_busy_timeout_comes_from_connect_timeout(self, db_config):
        engine, _ = create_session_factory(db_config)
        try:
            async with engine.connect() as conn:
                busy_timeout = (await conn.execute(text("PRAGMA busy_timeout"))).scalar()
        finally:
            await engine.dispose()

        assert busy_timeout == SQLITE_BUSY_TIMEOUT_SEC * 1000

    @pytest.mark.asyncio
    async def test_pragmas(self, db_config):
        engine, _ = create_session_factory(db_config)
        try:
            async with engine.connect() as conn:
                journal_mode = (await conn.execute(text("PRAGMA journal_mode"))).scalar()
                foreign_keys = (await conn.execute(text("PRAGMA foreign_keys"))).scalar()
        finally:
            await engine.dispose()

        assert journal_mode.lower() == "wal"
        assert foreign_keys == 1

    @pytest.mark.asyncio
    async def test_check_connection(self, db_config):
        engine, _ = create_session_factory(db_config)
        try:
            assert await check_connection(engine) is True
        finally:
            await engine.dispose()
