"""
Repositories - data access layer.

Repositories receive their database client in the constructor, so business
logic never reaches for a global client and tests pass a mock directly:

    from freight_sync.repositories import LoadRepository

    def test_find_load():
        repo = LoadRepository(mock_db)
"""

from .base import BaseRepository
from .load import LoadRepository, LoadAlreadyExistsError
from .sync_status import SyncStatusRepository

__all__ = [
    "BaseRepository",
    "LoadRepository",
    "LoadAlreadyExistsError",
    "SyncStatusRepository",
]
