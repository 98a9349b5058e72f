"""
Repository for sync runs (`sync_status` table).

Each DLQ retry run is recorded with sync_type='dlq_retry' so the sync
health dashboard shows it next to webhook and reconcile runs.
"""

import logging
from typing import Optional

from freight_sync.core.timezone import now_utc
from .base import BaseRepository

logger = logging.getLogger(__name__)

SYNC_TYPE_DLQ_RETRY = "dlq_retry"


class SyncStatusRepository(BaseRepository):
    """Writes run rows to `sync_status`."""

    @property
    def table_name(self) -> str:
        return "sync_status"

    async def start_run(self, sync_type: str = SYNC_TYPE_DLQ_RETRY) -> Optional[str]:
        """
        Opens a run row with status 'running'.

        Returns:
            Run id
        """
        response = await self._execute(
            self.table().insert({
                "sync_type": sync_type,
                "status": "running",
                "started_at": now_utc().isoformat(),
            }),
            "start_run",
        )
        return response.data[0]["id"] if response.data else None

    async def complete_run(
        self,
        run_id: str,
        processed: int,
        failed: int,
        metadata: Optional[dict] = None,
    ) -> None:
        """Marks a run as completed with its counters."""
        await self._execute(
            self.table().update({
                "status": "completed",
                "completed_at": now_utc().isoformat(),
                "records_processed": processed,
                "records_failed": failed,
                "metadata": metadata or {},
            }).eq("id", run_id),
            "complete_run",
        )

    async def fail_run(self, run_id: str, error: str) -> None:
        """Marks a run as failed."""
        await self._execute(
            self.table().update({
                "status": "failed",
                "completed_at": now_utc().isoformat(),
                "error_message": error,
            }).eq("id", run_id),
            "fail_run",
        )
