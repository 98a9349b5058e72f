"""
DLQ retry cycle.

Invoked periodically (every 15 minutes) through the /jobs/dlq-retry trigger.

Per run:
1. Backlog check; one Slack alert if over the limit (before any work)
2. Fetch items due for retry
3. Reconcile each item and record the outcome (success removes it,
   failure reschedules it with backoff)

One item's failure never stops the others. When the run budget is spent the
remaining items are left untouched and picked up by the next run.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, asdict
from typing import Optional

from freight_sync.core.config import settings
from freight_sync.repositories.sync_status import SyncStatusRepository
from freight_sync.services.webhooks.dlq import DeadLetterItem, DeadLetterStore
from freight_sync.services.webhooks.monitor import ThresholdMonitor
from freight_sync.services.webhooks.reconciler import (
    EventReconciler,
    ReconcileOutcome,
    ReconcileResult,
)

logger = logging.getLogger(__name__)


@dataclass
class RetryRunResult:
    """Counters of one retry run."""

    retried: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0    # successes that were no-ops (included in succeeded)
    deferred: int = 0   # due items left for the next run (budget spent)
    alerted: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def summary(self) -> str:
        return (
            f"retried={self.retried}, succeeded={self.succeeded} "
            f"(skipped={self.skipped}), failed={self.failed}, deferred={self.deferred}"
        )


class RetryScheduler:
    """
    Drives DLQ retries.

    Usage:
        scheduler = RetryScheduler(store, reconciler, ThresholdMonitor(store))
        result = await scheduler.run()
    """

    def __init__(
        self,
        store: DeadLetterStore,
        reconciler: EventReconciler,
        monitor: ThresholdMonitor,
        sync_log: Optional[SyncStatusRepository] = None,
        time_budget_seconds: Optional[float] = None,
        item_timeout_seconds: Optional[float] = None,
    ):
        self.store = store
        self.reconciler = reconciler
        self.monitor = monitor
        self.sync_log = sync_log
        self.time_budget_seconds = (
            time_budget_seconds
            if time_budget_seconds is not None
            else settings.DLQ_RETRY_TIME_BUDGET_SECONDS
        )
        self.item_timeout_seconds = (
            item_timeout_seconds
            if item_timeout_seconds is not None
            else settings.DLQ_RECONCILE_TIMEOUT_SECONDS
        )

    async def run(self) -> RetryRunResult:
        """
        Runs one retry cycle.

        Raises:
            Store errors from the backlog check or the due-item fetch
            (nothing has been processed at that point)
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.time_budget_seconds
        result = RetryRunResult()

        result.alerted = await self.monitor.check_and_alert()

        run_id = await self._start_run_log()
        try:
            items = await self.store.list_ready_for_retry()
        except Exception as e:
            await self._fail_run_log(run_id, str(e))
            raise

        logger.info(f"[DLQ Retry] {len(items)} items ready for retry")

        for index, item in enumerate(items):
            if loop.time() >= deadline:
                result.deferred = len(items) - index
                logger.warning(
                    f"[DLQ Retry] Time budget spent, {result.deferred} items left for next run"
                )
                break

            result.retried += 1
            outcome = await self._process_item(item)

            if outcome.succeeded:
                result.succeeded += 1
                if outcome.outcome == ReconcileOutcome.SKIPPED:
                    result.skipped += 1
            else:
                result.failed += 1

        logger.info(f"[DLQ Retry] Run finished: {result.summary}")
        await self._complete_run_log(run_id, result)
        return result

    async def retry_one(self, item_id: str) -> Optional[ReconcileResult]:
        """
        Retries a single item now, regardless of next_retry_at (manual action).

        Returns:
            ReconcileResult, or None if the item does not exist
        """
        item = await self.store.get(item_id)
        if item is None:
            return None
        logger.info(f"[DLQ Retry] Manual retry of {item_id}")
        return await self._process_item(item)

    async def _process_item(self, item: DeadLetterItem) -> ReconcileResult:
        """Reconciles one item and records the outcome. Never raises."""
        try:
            payload = json.loads(item.payload)
            outcome = await asyncio.wait_for(
                self.reconciler.reconcile(item.event_type, payload),
                timeout=self.item_timeout_seconds,
            )
        except json.JSONDecodeError as e:
            outcome = ReconcileResult.failed(f"Invalid payload JSON: {e}")
        except asyncio.TimeoutError:
            outcome = ReconcileResult.failed(
                f"Reconcile timed out after {self.item_timeout_seconds}s"
            )
        except Exception as e:
            logger.exception(f"[DLQ Retry] Unexpected error reprocessing {item.id}")
            outcome = ReconcileResult.failed(str(e) or e.__class__.__name__)

        try:
            if outcome.succeeded:
                await self.store.record_attempt(item.id, True)
                logger.info(f"[DLQ Retry] {item.id} succeeded ({outcome.outcome.value})")
            else:
                await self.store.record_attempt(
                    item.id, False, outcome.error or "Reprocessing returned false"
                )
                logger.error(f"[DLQ Retry] {item.id} failed: {outcome.error}")
        except Exception as e:
            logger.error(f"[DLQ Retry] Could not record outcome for {item.id}: {e}")
            return ReconcileResult.failed(f"Could not record outcome: {e}")

        return outcome

    async def _start_run_log(self) -> Optional[str]:
        if not self.sync_log:
            return None
        try:
            return await self.sync_log.start_run()
        except Exception as e:
            logger.warning(f"[DLQ Retry] Could not open sync_status row: {e}")
            return None

    async def _complete_run_log(self, run_id: Optional[str], result: RetryRunResult) -> None:
        if not self.sync_log or not run_id:
            return
        try:
            await self.sync_log.complete_run(
                run_id,
                processed=result.succeeded,
                failed=result.failed,
                metadata=result.to_dict(),
            )
        except Exception as e:
            logger.warning(f"[DLQ Retry] Could not close sync_status row {run_id}: {e}")

    async def _fail_run_log(self, run_id: Optional[str], error: str) -> None:
        if not self.sync_log or not run_id:
            return
        try:
            await self.sync_log.fail_run(run_id, error)
        except Exception as e:
            logger.warning(f"[DLQ Retry] Could not mark sync_status row {run_id} failed: {e}")
