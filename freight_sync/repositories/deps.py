"""
Dependency injection for the DLQ engine.

Clients are created once per process (see services.redis / services.supabase)
and passed by reference into every component. FastAPI routes use these
functions with Depends; tests override them with app.dependency_overrides.

Usage in endpoints:
    @router.get("/admin/dlq")
    async def list_dlq(store: DeadLetterStore = Depends(get_dead_letter_store)):
        return await store.list_items()
"""
from functools import lru_cache

from freight_sync.services.redis import get_redis_client
from freight_sync.services.supabase import get_supabase_client
from freight_sync.services.webhooks.dlq import DeadLetterStore
from freight_sync.services.webhooks.monitor import ThresholdMonitor
from freight_sync.services.webhooks.reconciler import EventReconciler
from freight_sync.services.webhooks.retry import RetryScheduler
from .load import LoadRepository
from .sync_status import SyncStatusRepository


@lru_cache()
def get_dead_letter_store() -> DeadLetterStore:
    """Process-wide DeadLetterStore."""
    return DeadLetterStore(get_redis_client())


@lru_cache()
def get_load_repo() -> LoadRepository:
    """Process-wide LoadRepository."""
    return LoadRepository(get_supabase_client())


@lru_cache()
def get_sync_status_repo() -> SyncStatusRepository:
    """Process-wide SyncStatusRepository."""
    return SyncStatusRepository(get_supabase_client())


def get_retry_scheduler() -> RetryScheduler:
    """RetryScheduler wired to the process-wide store and repositories."""
    store = get_dead_letter_store()
    return RetryScheduler(
        store=store,
        reconciler=EventReconciler(get_load_repo()),
        monitor=ThresholdMonitor(store),
        sync_log=get_sync_status_repo(),
    )
