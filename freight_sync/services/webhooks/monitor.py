"""
DLQ backlog monitor.

Fires one dlq_overflow alert when the queue holds more than the configured
limit. Alert delivery is fire-and-forget: a Slack failure is logged and never
reaches the retry run. Store errors do propagate.
"""

import logging
from typing import Awaitable, Callable, Optional

from freight_sync.core.config import settings
from freight_sync.core.timezone import now_utc
from freight_sync.services.slack import send_dlq_overflow_alert
from freight_sync.services.webhooks.dlq import DeadLetterStore, DLQStats

logger = logging.getLogger(__name__)

ALERT_KIND_DLQ_OVERFLOW = "dlq_overflow"

AlertSender = Callable[[dict], Awaitable[bool]]


def build_overflow_alert(stats: DLQStats) -> dict:
    """Alert payload sent to the notification channel."""
    return {
        "kind": ALERT_KIND_DLQ_OVERFLOW,
        "count": stats.count,
        "byEventType": dict(stats.by_event_type),
        "maxRetriesReached": stats.max_retries_reached,
        "timestamp": now_utc().isoformat(),
    }


class ThresholdMonitor:
    """Checks DLQ size against a limit and alerts."""

    def __init__(
        self,
        store: DeadLetterStore,
        limit: Optional[int] = None,
        send_alert: AlertSender = send_dlq_overflow_alert,
    ):
        self.store = store
        self.limit = limit if limit is not None else settings.DLQ_ALERT_THRESHOLD
        self.send_alert = send_alert

    async def is_over_threshold(self) -> bool:
        return await self.store.over_threshold(self.limit)

    async def check_and_alert(self) -> bool:
        """
        Sends one alert if the backlog is over the limit.

        Returns:
            True if the backlog was over the limit and an alert was attempted
        """
        stats = await self.store.stats()
        if stats.count <= self.limit:
            return False

        alert = build_overflow_alert(stats)
        logger.warning(
            f"[DLQ Monitor] Backlog {stats.count} over limit {self.limit} "
            f"({stats.max_retries_reached} at max retries)"
        )

        try:
            delivered = await self.send_alert(alert)
            if not delivered:
                logger.error("[DLQ Monitor] Overflow alert was not delivered")
        except Exception as e:
            logger.error(f"[DLQ Monitor] Error sending overflow alert: {e}")

        return True
