"""
Webhook Services - robust processing of PortPro webhooks.

Includes:
- DLQ (Dead Letter Queue) storage
- Idempotent event reconciliation
- Retry cycle with backoff and backlog alerting
"""

from freight_sync.services.webhooks.dlq import (
    DeadLetterItem,
    DeadLetterStore,
    DLQStats,
    backoff_delay,
)
from freight_sync.services.webhooks.reconciler import (
    EventReconciler,
    ReconcileOutcome,
    ReconcileResult,
)
from freight_sync.services.webhooks.monitor import ThresholdMonitor
from freight_sync.services.webhooks.retry import RetryScheduler, RetryRunResult

__all__ = [
    "DeadLetterItem",
    "DeadLetterStore",
    "DLQStats",
    "backoff_delay",
    "EventReconciler",
    "ReconcileOutcome",
    "ReconcileResult",
    "ThresholdMonitor",
    "RetryScheduler",
    "RetryRunResult",
]
