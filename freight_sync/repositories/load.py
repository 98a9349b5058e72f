"""
Repository for loads (shipments tracked through PortPro).

Only the operations the webhook reconciler needs. Loads are always located
by `portpro_reference`, the correlation key shared with PortPro.
"""

import logging
from typing import Optional

from freight_sync.core.exceptions import DatabaseError
from freight_sync.core.timezone import now_utc
from .base import BaseRepository

logger = logging.getLogger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class LoadAlreadyExistsError(DatabaseError):
    """Insert rejected because a load with the same reference exists."""
    pass


class LoadRepository(BaseRepository):
    """
    Repository for the `loads` table.

    Usage:
        repo = LoadRepository(get_supabase_client())
        load = await repo.find_by_reference("REF-123")
    """

    @property
    def table_name(self) -> str:
        return "loads"

    async def find_by_reference(self, reference_number: str) -> Optional[dict]:
        """
        Finds a load by PortPro reference.

        Args:
            reference_number: PortPro reference number

        Returns:
            Row with `id`, or None
        """
        response = await self._execute(
            self.table().select("id").eq("portpro_reference", reference_number).limit(1),
            "find_by_reference",
        )
        return response.data[0] if response.data else None

    async def create(self, data: dict) -> dict:
        """
        Inserts a load.

        Raises:
            LoadAlreadyExistsError: A load with the same reference was inserted first
            DatabaseError: Any other datastore failure
        """
        try:
            response = await self._execute(self.table().insert(data), "create")
        except DatabaseError as e:
            if e.details.get("code") == UNIQUE_VIOLATION:
                raise LoadAlreadyExistsError(
                    "Load already exists",
                    details={"portpro_reference": data.get("portpro_reference")},
                    original_error=e.original_error,
                ) from e
            raise

        logger.info(f"[Loads] Created load {data.get('tracking_number')} ({data.get('portpro_reference')})")
        return response.data[0] if response.data else data

    async def update_by_reference(self, reference_number: str, updates: dict) -> int:
        """
        Applies a partial update to the load with the given reference.

        Only the keys in `updates` are written (plus updated_at).

        Returns:
            Number of rows updated (0 when the load does not exist yet)
        """
        payload = {**updates, "updated_at": now_utc().isoformat()}
        response = await self._execute(
            self.table().update(payload).eq("portpro_reference", reference_number),
            "update_by_reference",
        )
        return len(response.data or [])
