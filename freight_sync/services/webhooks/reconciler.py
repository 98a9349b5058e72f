"""
Idempotent reconciliation of PortPro load events into the `loads` table.

Characteristics:
- Idempotent: applying the same payload twice leaves the same state
- Partial updates: fields absent from the payload are never written
- Lookup always by portpro_reference
- Only datastore failures fail an event; payload gaps degrade to a no-op,
  since redelivery cannot add information the payload never had
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from freight_sync.core.exceptions import DatabaseError
from freight_sync.core.timezone import now_utc
from freight_sync.repositories.load import LoadAlreadyExistsError, LoadRepository
from freight_sync.services.portpro.events import LoadEventData, LoadEventType
from freight_sync.services.portpro.status import map_portpro_status

logger = logging.getLogger(__name__)

PLACEHOLDER_CONTAINER = "PENDING"
PLACEHOLDER_STATUS = "PENDING"


class ReconcileOutcome(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"  # nothing to do; counts as success
    FAILED = "failed"


@dataclass
class ReconcileResult:
    """Outcome of reconciling one event."""

    outcome: ReconcileOutcome
    reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome != ReconcileOutcome.FAILED

    @classmethod
    def applied(cls, reason: Optional[str] = None) -> "ReconcileResult":
        return cls(ReconcileOutcome.APPLIED, reason=reason)

    @classmethod
    def skipped(cls, reason: str) -> "ReconcileResult":
        return cls(ReconcileOutcome.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, error: str) -> "ReconcileResult":
        return cls(ReconcileOutcome.FAILED, error=error)


def _base36(number: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    result = ""
    while number:
        number, remainder = divmod(number, 36)
        result = digits[remainder] + result
    return result or "0"


def generate_tracking_number() -> str:
    """Internal tracking number: NSL + base36(epoch ms) + 4 random chars."""
    millis = int(now_utc().timestamp() * 1000)
    return f"NSL{_base36(millis)}{uuid.uuid4().hex[:4].upper()}"


Handler = Callable[[LoadEventData], Awaitable[ReconcileResult]]


class EventReconciler:
    """
    Applies webhook payloads to loads.

    Usage:
        reconciler = EventReconciler(LoadRepository(get_supabase_client()))
        result = await reconciler.reconcile("load#status_updated", payload)
    """

    def __init__(self, loads: LoadRepository):
        self.loads = loads
        self._handlers: Dict[LoadEventType, Handler] = {
            LoadEventType.CREATED: self._handle_created,
            LoadEventType.STATUS_UPDATED: self._handle_status_updated,
            LoadEventType.INFO_UPDATED: self._handle_info_updated,
            LoadEventType.DATES_UPDATED: self._handle_info_updated,
            LoadEventType.EQUIPMENT_UPDATED: self._handle_equipment_updated,
        }

    async def reconcile(self, event_type: str, payload: Any) -> ReconcileResult:
        """
        Reconciles one webhook event.

        Args:
            event_type: PortPro event type (e.g. "load#created")
            payload: Parsed webhook body

        Returns:
            ReconcileResult (never raises for datastore failures)
        """
        handled_type = LoadEventType.from_raw(event_type)
        if handled_type is None:
            logger.info(f"[Reconcile] Skipping unhandled event type {event_type}")
            return ReconcileResult.skipped(f"unhandled event type {event_type}")

        event = LoadEventData.from_payload(payload)
        if not event.has_data:
            logger.warning(f"[Reconcile] {event_type} without data, nothing to apply")
            return ReconcileResult.skipped("payload without data")
        if not event.reference_number:
            logger.warning(f"[Reconcile] {event_type} without reference number, nothing to apply")
            return ReconcileResult.skipped("payload without reference number")

        try:
            result = await self._handlers[handled_type](event)
        except DatabaseError as e:
            logger.error(f"[Reconcile] {event_type} ref={event.reference_number} failed: {e.message}")
            return ReconcileResult.failed(e.message)

        logger.info(
            f"[Reconcile] {event_type} ref={event.reference_number}: {result.outcome.value}"
            + (f" ({result.reason})" if result.reason else "")
        )
        return result

    async def _handle_created(self, event: LoadEventData) -> ReconcileResult:
        if await self.loads.find_by_reference(event.reference_number):
            return ReconcileResult.skipped("load already exists")

        data = {
            "tracking_number": generate_tracking_number(),
            "portpro_reference": event.reference_number,
            "portpro_load_id": event.load_id,
            "container_number": event.container_number or PLACEHOLDER_CONTAINER,
            "status": map_portpro_status(event.status or PLACEHOLDER_STATUS).value,
            "customer_name": event.customer_name,
            "customer_email": event.customer_email,
        }

        try:
            await self.loads.create(data)
        except LoadAlreadyExistsError:
            return ReconcileResult.skipped("load created concurrently")

        return ReconcileResult.applied("load created")

    async def _handle_status_updated(self, event: LoadEventData) -> ReconcileResult:
        if not event.status:
            return ReconcileResult.skipped("no status in payload")

        status = map_portpro_status(event.status)
        return await self._apply_updates(event.reference_number, {"status": status.value})

    async def _handle_info_updated(self, event: LoadEventData) -> ReconcileResult:
        updates = {}
        if event.delivery_from_time:
            updates["eta"] = event.delivery_from_time
        if event.pickup_from_time:
            updates["pickup_time"] = event.pickup_from_time
        if event.container_size:
            updates["container_size"] = event.container_size

        return await self._apply_updates(event.reference_number, updates)

    async def _handle_equipment_updated(self, event: LoadEventData) -> ReconcileResult:
        updates = {}
        if event.container_number:
            updates["container_number"] = event.container_number
        if event.chassis_number:
            updates["chassis_number"] = event.chassis_number
        if event.seal_number:
            updates["seal_number"] = event.seal_number

        return await self._apply_updates(event.reference_number, updates)

    async def _apply_updates(self, reference_number: str, updates: dict) -> ReconcileResult:
        if not updates:
            return ReconcileResult.skipped("no fields to update")

        rows = await self.loads.update_by_reference(reference_number, updates)
        if rows == 0:
            # load#created not applied yet
            return ReconcileResult.skipped("load not found")

        return ReconcileResult.applied(f"updated {', '.join(sorted(updates))}")
