"""
Tests for LoadRepository and SyncStatusRepository.

Repositories take the client in the constructor, so tests pass a fake
database directly.
"""
import pytest
from unittest.mock import MagicMock

from postgrest.exceptions import APIError

from freight_sync.core.exceptions import DatabaseError
from freight_sync.repositories.load import LoadAlreadyExistsError, LoadRepository
from freight_sync.repositories.sync_status import SyncStatusRepository


class MockTable:
    """Mock for the Supabase table chain."""

    def __init__(self, data=None, error=None):
        self.data = data or []
        self.error = error
        self.filters = {}
        self.inserted = None
        self.updated = None

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        self.inserted = data
        return self

    def update(self, data):
        self.updated = data
        return self

    def eq(self, field, value):
        self.filters[field] = value
        return self

    def limit(self, count):
        return self

    def execute(self):
        if self.error:
            raise self.error
        response = MagicMock()
        response.data = self.data
        return response


class MockDatabase:
    """Mock for the Supabase client; remembers the last table used."""

    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error
        self.last_table = None
        self.last_table_name = None

    def table(self, name):
        self.last_table_name = name
        self.last_table = MockTable(self.data, self.error)
        return self.last_table


class TestLoadRepository:

    @pytest.mark.asyncio
    async def test_find_by_reference(self):
        db = MockDatabase([{"id": "load-1"}])

        load = await LoadRepository(db).find_by_reference("POP-1")

        assert load == {"id": "load-1"}
        assert db.last_table_name == "loads"
        assert db.last_table.filters == {"portpro_reference": "POP-1"}

    @pytest.mark.asyncio
    async def test_find_by_reference_not_found(self):
        assert await LoadRepository(MockDatabase([])).find_by_reference("POP-1") is None

    @pytest.mark.asyncio
    async def test_create(self):
        db = MockDatabase([{"id": "load-1", "portpro_reference": "POP-1"}])

        row = await LoadRepository(db).create({"portpro_reference": "POP-1"})

        assert row["id"] == "load-1"
        assert db.last_table.inserted == {"portpro_reference": "POP-1"}

    @pytest.mark.asyncio
    async def test_create_unique_violation(self):
        error = APIError({"message": "duplicate key value", "code": "23505"})

        with pytest.raises(LoadAlreadyExistsError):
            await LoadRepository(MockDatabase(error=error)).create({"portpro_reference": "POP-1"})

    @pytest.mark.asyncio
    async def test_create_other_api_error(self):
        error = APIError({"message": "permission denied", "code": "42501"})

        with pytest.raises(DatabaseError) as exc_info:
            await LoadRepository(MockDatabase(error=error)).create({"portpro_reference": "POP-1"})

        assert not isinstance(exc_info.value, LoadAlreadyExistsError)
        assert exc_info.value.details == {"code": "42501"}

    @pytest.mark.asyncio
    async def test_update_by_reference_returns_row_count(self):
        db = MockDatabase([{"id": "load-1"}])

        rows = await LoadRepository(db).update_by_reference("POP-1", {"status": "delivered"})

        assert rows == 1
        assert db.last_table.updated["status"] == "delivered"
        assert "updated_at" in db.last_table.updated
        assert db.last_table.filters == {"portpro_reference": "POP-1"}

    @pytest.mark.asyncio
    async def test_connection_failure_becomes_database_error(self):
        db = MockDatabase(error=ConnectionError("timeout"))

        with pytest.raises(DatabaseError):
            await LoadRepository(db).update_by_reference("POP-1", {"status": "delivered"})


class TestSyncStatusRepository:

    @pytest.mark.asyncio
    async def test_start_run(self):
        db = MockDatabase([{"id": "run-1"}])

        run_id = await SyncStatusRepository(db).start_run()

        assert run_id == "run-1"
        assert db.last_table_name == "sync_status"
        assert db.last_table.inserted["sync_type"] == "dlq_retry"
        assert db.last_table.inserted["status"] == "running"

    @pytest.mark.asyncio
    async def test_complete_run(self):
        db = MockDatabase([{"id": "run-1"}])

        await SyncStatusRepository(db).complete_run("run-1", processed=4, failed=1, metadata={"deferred": 0})

        assert db.last_table.updated["status"] == "completed"
        assert db.last_table.updated["records_processed"] == 4
        assert db.last_table.updated["records_failed"] == 1
        assert db.last_table.filters == {"id": "run-1"}

    @pytest.mark.asyncio
    async def test_fail_run(self):
        db = MockDatabase([{"id": "run-1"}])

        await SyncStatusRepository(db).fail_run("run-1", "redis down")

        assert db.last_table.updated["status"] == "failed"
        assert db.last_table.updated["error_message"] == "redis down"
