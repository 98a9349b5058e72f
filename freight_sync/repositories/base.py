"""
Base Repository - shared plumbing for Supabase-backed repositories.

Repositories receive the database client in the constructor so tests can
pass a mock and the application can share one client per process.
"""
from abc import ABC, abstractmethod
import asyncio
from typing import Any
import logging

from postgrest.exceptions import APIError

from freight_sync.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Base class for repositories.

    Attributes:
        db: Database client (Supabase, mock, ...)
        table_name: Table backing the repository

    Example:
        class LoadRepository(BaseRepository):
            @property
            def table_name(self) -> str:
                return "loads"
    """

    def __init__(self, db_client: Any):
        """
        Args:
            db_client: Database client (Supabase, mock, ...)
        """
        self.db = db_client

    @property
    @abstractmethod
    def table_name(self) -> str:
        """Table name."""
        pass

    def table(self):
        return self.db.table(self.table_name)

    async def _execute(self, query: Any, operation: str):
        """
        Runs a query builder, converting client failures into DatabaseError.

        The supabase-py call is blocking, so it runs in the default executor;
        the event loop stays free and callers can bound it with wait_for.

        Args:
            query: postgrest query builder, ready to execute
            operation: Short description for logs and error details

        Returns:
            The postgrest response

        Raises:
            DatabaseError: On any failure reported by the datastore
        """
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, query.execute)
        except APIError as e:
            logger.error(f"[DB] {self.table_name}.{operation} failed: {e.message}")
            raise DatabaseError(
                f"{self.table_name}.{operation} failed: {e.message}",
                details={"code": e.code},
                original_error=e,
            ) from e
        except Exception as e:
            logger.error(f"[DB] {self.table_name}.{operation} failed: {e}")
            raise DatabaseError(
                f"{self.table_name}.{operation} failed: {e}",
                original_error=e,
            ) from e
