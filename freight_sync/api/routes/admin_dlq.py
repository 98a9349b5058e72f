"""
Admin endpoints for the PortPro dead-letter queue.

All routes require the X-API-Key header (ADMIN_API_KEY).
"""

import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from freight_sync.core.config import settings
from freight_sync.core.exceptions import NotFoundError
from freight_sync.repositories.deps import get_dead_letter_store, get_retry_scheduler
from freight_sync.services.webhooks.dlq import DeadLetterStore
from freight_sync.services.webhooks.retry import RetryScheduler

logger = logging.getLogger(__name__)


async def _verify_api_key(
    x_api_key: str = Header(None, alias="X-API-Key"),
) -> None:
    expected = settings.ADMIN_API_KEY
    if not expected:
        raise HTTPException(500, "API key not configured")
    if not x_api_key or not hmac.compare_digest(x_api_key, expected):
        raise HTTPException(401, "Invalid API key")


router = APIRouter(
    prefix="/admin/dlq",
    tags=["Admin DLQ"],
    dependencies=[Depends(_verify_api_key)],
)


@router.get("")
async def list_dlq(
    limit: int = Query(default=100, ge=1, le=1000),
    store: DeadLetterStore = Depends(get_dead_letter_store),
):
    """Lists queued items (most recently updated first) plus queue stats."""
    items = await store.list_items(limit)
    stats = await store.stats()
    return {
        "items": [item.to_dict() for item in items],
        "stats": stats.to_dict(),
    }


@router.delete("")
async def clear_dlq(store: DeadLetterStore = Depends(get_dead_letter_store)):
    """Removes every item."""
    removed = await store.clear()
    logger.warning(f"[Admin DLQ] Queue cleared ({removed} items)")
    return {"success": True, "removed": removed}


@router.delete("/{item_id}")
async def delete_dlq_item(
    item_id: str,
    store: DeadLetterStore = Depends(get_dead_letter_store),
):
    if not await store.remove(item_id):
        raise NotFoundError("DLQ item", item_id)
    return {"success": True}


@router.post("/{item_id}/retry")
async def retry_dlq_item(
    item_id: str,
    scheduler: RetryScheduler = Depends(get_retry_scheduler),
):
    """Retries one item now, ignoring next_retry_at and the retry ceiling."""
    result = await scheduler.retry_one(item_id)
    if result is None:
        raise NotFoundError("DLQ item", item_id)
    return {
        "success": result.succeeded,
        "id": item_id,
        "outcome": result.outcome.value,
        "reason": result.reason,
        "error": result.error,
    }


@router.post("/{item_id}/extend")
async def extend_dlq_item(
    item_id: str,
    extra: int = Query(default=1, ge=1, le=100),
    store: DeadLetterStore = Depends(get_dead_letter_store),
):
    """Raises an item's retry ceiling so automatic retries resume."""
    item = await store.extend_ceiling(item_id, extra)
    if item is None:
        raise NotFoundError("DLQ item", item_id)
    return item.to_dict()
