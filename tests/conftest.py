"""
Shared test fixtures.

Fixtures here are available to every test module. Module-specific fixtures
live next to the tests that use them.
"""

import json
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


# =============================================================================
# MOCK FACTORIES
# =============================================================================


def create_mock_supabase(return_data: list[dict[str, Any]] | None = None) -> MagicMock:
    """
    Creates a Supabase client mock with the query-builder chain configured.

    Args:
        return_data: List of dicts returned by .execute().data

    Example:
        mock = create_mock_supabase([{"id": "123"}])
        mock.table("loads").select("id").eq("portpro_reference", "R1").execute().data
    """
    mock = MagicMock()
    mock.table.return_value = mock
    mock.select.return_value = mock
    mock.insert.return_value = mock
    mock.update.return_value = mock
    mock.delete.return_value = mock
    mock.eq.return_value = mock
    mock.order.return_value = mock
    mock.limit.return_value = mock

    response = MagicMock()
    response.data = return_data if return_data is not None else []
    mock.execute.return_value = response

    return mock


class FakePipeline:
    """Pipeline handed to the callable of FakeRedis.transaction."""

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._queued = []
        self.in_multi = False

    async def hget(self, key: str, field: str):
        return self._redis.hashes.get(key, {}).get(field)

    def multi(self):
        self.in_multi = True

    def hset(self, key: str, field: str, value: str):
        assert self.in_multi, "hset must be queued after multi()"
        self._queued.append((key, field, value))
        return self

    def flush(self):
        for key, field, value in self._queued:
            self._redis.hashes.setdefault(key, {})[field] = value


class FakeRedis:
    """
    In-memory stand-in for the redis.asyncio hash commands the DLQ uses.

    `transactions` counts WATCH/MULTI blocks; `fail_hdel` lists fields whose
    HDEL raises.
    """

    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}
        self.transactions = 0
        self.fail_hdel: set[str] = set()
        self.ping = AsyncMock(return_value=True)

    async def hset(self, key: str, field: str, value: str) -> int:
        bucket = self.hashes.setdefault(key, {})
        created = field not in bucket
        bucket[field] = value
        return int(created)

    async def hget(self, key: str, field: str):
        return self.hashes.get(key, {}).get(field)

    async def hgetall(self, key: str) -> dict:
        return dict(self.hashes.get(key, {}))

    async def hkeys(self, key: str) -> list:
        return list(self.hashes.get(key, {}))

    async def hlen(self, key: str) -> int:
        return len(self.hashes.get(key, {}))

    async def hdel(self, key: str, field: str) -> int:
        if field in self.fail_hdel:
            raise ConnectionError(f"hdel {field} failed")
        return int(self.hashes.get(key, {}).pop(field, None) is not None)

    async def transaction(self, func, *watches, value_from_callable=False):
        self.transactions += 1
        pipe = FakePipeline(self)
        value = await func(pipe)
        pipe.flush()
        return value if value_from_callable else []

    def put_raw(self, key: str, field: str, document: dict):
        self.hashes.setdefault(key, {})[field] = json.dumps(document)

    def document(self, key: str, field: str) -> dict:
        return json.loads(self.hashes[key][field])


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def fake_redis():
    """In-memory Redis holding the DLQ hash."""
    return FakeRedis()


@pytest.fixture
def mock_supabase_factory():
    """
    Factory for Supabase mocks with specific data.

    Usage:
        def test_something(mock_supabase_factory):
            mock = mock_supabase_factory([{"id": "123"}])
    """
    return create_mock_supabase


@pytest.fixture
def fixed_now():
    """Fixed reference instant (UTC)."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def created_payload():
    """Realistic load#created webhook body."""
    return {
        "event_type": "load#created",
        "reference_number": "POP-1001",
        "data": {
            "_id": "64f0c2a1b2",
            "status": "AVAILABLE",
            "containerNo": "MSCU1234567",
            "containerSize": "40'",
            "caller": {"company_name": "Acme Imports", "email": "ops@acme.test"},
        },
    }
