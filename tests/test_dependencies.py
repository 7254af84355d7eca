"""Tests for the storage handle and the request session dependency."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from bookly.dependencies import Database, get_db


def _request_with(database) -> SimpleNamespace:
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(database=database)))


def _database_yielding(session) -> MagicMock:
    session_cm = MagicMock()
    session_cm.__aenter__ = AsyncMock(return_value=session)
    session_cm.__aexit__ = AsyncMock(return_value=False)
    database = MagicMock()
    database.session_factory = MagicMock(return_value=session_cm)
    return database


class TestDatabase:
    def test_unconnected_handle_raises(self, settings):
        database = Database(settings)
        assert database.is_connected is False
        with pytest.raises(RuntimeError, match="not connected"):
            database.session_factory
        with pytest.raises(RuntimeError):
            database.engine

    @pytest.mark.asyncio
    async def test_connect_and_dispose(self, settings):
        database = Database(settings).connect()
        assert database.is_connected is True
        assert database.engine.pool.size() == settings.db_pool_size

        await database.dispose()
        assert database.is_connected is False

    def test_connect_is_idempotent(self, settings):
        database = Database(settings).connect()
        engine = database.engine
        assert database.connect().engine is engine


class TestGetDb:
    @pytest.mark.asyncio
    async def test_commits_on_success(self):
        session = AsyncMock()
        gen = get_db(_request_with(_database_yielding(session)))

        assert await gen.__anext__() is session
        with pytest.raises(StopAsyncIteration):
            await gen.__anext__()
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self):
        session = AsyncMock()
        gen = get_db(_request_with(_database_yielding(session)))
        await gen.__anext__()

        with pytest.raises(ValueError):
            await gen.athrow(ValueError("boom"))
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()


class TestModelMetadata:
    def test_package_exports_declarative_base(self):
        from bookly.models import Base

        assert {"event_types", "availability_rules", "availability_overrides", "meetings", "audit_log"} <= set(
            Base.metadata.tables
        )

    def test_exclusion_constraint_is_registered(self):
        from bookly.models import Base

        names = {c.name for c in Base.metadata.tables["meetings"].constraints}
        assert "meetings_no_overlap_per_event_type" in names
