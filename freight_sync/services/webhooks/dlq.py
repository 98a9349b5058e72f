"""
Dead Letter Queue for PortPro webhooks.

Stores webhooks whose synchronous processing failed so the retry job can
reprocess them later. Items live in one Redis hash (field = item id, value =
JSON document).

- Success removes the item (HDEL)
- Failure bumps attempt_count and pushes next_retry_at out with backoff,
  inside a WATCH/MULTI transaction so two workers never interleave on an item
- Items at the retry ceiling stay in the hash until an operator acts
"""

import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import redis.asyncio as redis

from freight_sync.core.config import settings
from freight_sync.core.timezone import now_utc, parse_timestamp, to_utc

logger = logging.getLogger(__name__)

DLQ_KEY = "portpro:dlq"

# Delay before the next attempt, indexed by attempt_count after the failure.
# The last entry is the cap.
BACKOFF_DELAYS_SECONDS = (60, 300, 900, 3600, 14400)


def backoff_delay(attempt_count: int) -> timedelta:
    """
    Delay before the next retry.

    Args:
        attempt_count: Failed attempts so far (after the current failure)

    Returns:
        Delay, non-decreasing in attempt_count and capped
    """
    index = min(max(attempt_count, 0), len(BACKOFF_DELAYS_SECONDS) - 1)
    return timedelta(seconds=BACKOFF_DELAYS_SECONDS[index])


def _new_item_id() -> str:
    return f"{int(now_utc().timestamp() * 1000)}-{uuid.uuid4().hex[:7]}"


@dataclass
class DeadLetterItem:
    """One failed webhook delivery awaiting retry."""

    id: str
    event_type: str
    payload: str
    reference_number: Optional[str] = None
    attempt_count: int = 0
    max_retries: int = 5
    next_retry_at: datetime = field(default_factory=now_utc)
    last_error: Optional[str] = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @property
    def max_retries_reached(self) -> bool:
        return self.attempt_count >= self.max_retries

    def is_ready(self, now: datetime) -> bool:
        """Due for automatic retry at `now`."""
        return not self.max_retries_reached and self.next_retry_at <= now

    def with_failure(self, error: Optional[str], now: datetime) -> "DeadLetterItem":
        """
        Returns the item as it should look after one more failed attempt.

        next_retry_at never moves backwards, even if the clock does.
        """
        attempt_count = self.attempt_count + 1
        next_retry_at = max(now + backoff_delay(attempt_count), self.next_retry_at)
        return replace(
            self,
            attempt_count=attempt_count,
            next_retry_at=next_retry_at,
            last_error=error or self.last_error,
            updated_at=now,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "payload": self.payload,
            "reference_number": self.reference_number,
            "attempt_count": self.attempt_count,
            "max_retries": self.max_retries,
            "next_retry_at": self.next_retry_at.isoformat(),
            "last_error": self.last_error,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict) -> "DeadLetterItem":
        """Builds an item from its stored document."""
        created_at = parse_timestamp(data.get("created_at")) or now_utc()
        return cls(
            id=data["id"],
            event_type=data["event_type"],
            payload=data.get("payload", ""),
            reference_number=data.get("reference_number"),
            attempt_count=int(data.get("attempt_count", 0)),
            max_retries=int(data.get("max_retries", settings.DLQ_MAX_RETRIES)),
            next_retry_at=parse_timestamp(data.get("next_retry_at")) or created_at,
            last_error=data.get("last_error"),
            created_at=created_at,
            updated_at=parse_timestamp(data.get("updated_at")) or created_at,
        )

    @classmethod
    def from_json(cls, raw: str) -> "DeadLetterItem":
        return cls.from_dict(json.loads(raw))


@dataclass
class DLQStats:
    """Aggregate view of the queue, computed on every call."""

    count: int = 0
    by_event_type: Dict[str, int] = field(default_factory=dict)
    max_retries_reached: int = 0
    oldest_item: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "by_event_type": dict(self.by_event_type),
            "max_retries_reached": self.max_retries_reached,
            "oldest_item": self.oldest_item,
        }


class DeadLetterStore:
    """
    Data access for the DLQ. No business logic.

    Redis errors propagate to the caller untouched.

    Usage:
        store = DeadLetterStore(get_redis_client())
        item_id = await store.enqueue("load#created", raw_body, "REF-1")
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        max_retries: Optional[int] = None,
        key: str = DLQ_KEY,
    ):
        self.redis = redis_client
        self.max_retries = max_retries if max_retries is not None else settings.DLQ_MAX_RETRIES
        self.key = key

    async def enqueue(
        self,
        event_type: str,
        payload: Any,
        reference_number: Optional[str] = None,
    ) -> str:
        """
        Saves a failed webhook.

        Args:
            event_type: PortPro event type
            payload: Original body; strings are kept verbatim, anything else is JSON-encoded
            reference_number: PortPro reference, if it could be extracted

        Returns:
            Item id
        """
        now = now_utc()
        item = DeadLetterItem(
            id=_new_item_id(),
            event_type=event_type,
            payload=payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False),
            reference_number=reference_number,
            attempt_count=0,
            max_retries=self.max_retries,
            next_retry_at=now,
            created_at=now,
            updated_at=now,
        )

        await self.redis.hset(self.key, item.id, item.to_json())

        logger.warning(f"[DLQ] Webhook queued: {item.id} ({event_type}, ref={reference_number})")
        return item.id

    async def _load_all(self) -> List[DeadLetterItem]:
        raw_items = await self.redis.hgetall(self.key) or {}

        items = []
        for item_id, raw in raw_items.items():
            try:
                items.append(DeadLetterItem.from_json(raw))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"[DLQ] Skipping unreadable item {item_id}: {e}")
        return items

    async def list_items(self, limit: Optional[int] = None) -> List[DeadLetterItem]:
        """
        Lists items, most recently updated first.

        Args:
            limit: Max items (None = all)
        """
        items = sorted(await self._load_all(), key=lambda i: i.updated_at, reverse=True)
        return items[:limit] if limit else items

    async def get(self, item_id: str) -> Optional[DeadLetterItem]:
        """Fetches one item by id."""
        raw = await self.redis.hget(self.key, item_id)
        return DeadLetterItem.from_json(raw) if raw else None

    async def list_ready_for_retry(self, now: Optional[datetime] = None) -> List[DeadLetterItem]:
        """
        Items due for retry: next_retry_at <= now and below the retry ceiling.

        Returns:
            Items ordered by next_retry_at (oldest first)
        """
        now = to_utc(now) if now else now_utc()
        ready = [item for item in await self._load_all() if item.is_ready(now)]
        return sorted(ready, key=lambda i: i.next_retry_at)

    async def record_attempt(
        self,
        item_id: str,
        success: bool,
        error: Optional[str] = None,
    ) -> bool:
        """
        Records the outcome of a retry attempt.

        Success removes the item. Failure increments attempt_count, stores the
        error and schedules the next retry with backoff.

        Returns:
            True if the item existed
        """
        if success:
            removed = await self.redis.hdel(self.key, item_id)
            if removed:
                logger.info(f"[DLQ] Removed {item_id} after successful retry")
            return bool(removed)

        now = now_utc()
        updated = await self._update_item(item_id, lambda item: item.with_failure(error, now))
        if updated is None:
            return False

        if updated.max_retries_reached:
            logger.warning(
                f"[DLQ] {item_id} reached max retries ({updated.max_retries}), kept for manual review"
            )
        else:
            logger.info(
                f"[DLQ] {item_id} attempt {updated.attempt_count}/{updated.max_retries} failed, "
                f"next retry at {updated.next_retry_at.isoformat()}"
            )
        return True

    async def extend_ceiling(self, item_id: str, extra: int = 1) -> Optional[DeadLetterItem]:
        """
        Raises an item's max_retries so automatic retries resume.

        Returns:
            Updated item, or None if it does not exist
        """
        updated = await self._update_item(
            item_id,
            lambda item: replace(item, max_retries=item.max_retries + extra, updated_at=now_utc()),
        )
        if updated:
            logger.info(f"[DLQ] {item_id} retry ceiling raised to {updated.max_retries}")
        return updated

    async def _update_item(self, item_id: str, mutate) -> Optional[DeadLetterItem]:
        """
        Read-modify-write of one item under WATCH/MULTI.

        Redis retries the callable if the hash changes between WATCH and EXEC.
        """
        async def _apply(pipe) -> Optional[DeadLetterItem]:
            raw = await pipe.hget(self.key, item_id)
            if raw is None:
                return None
            updated = mutate(DeadLetterItem.from_json(raw))
            pipe.multi()
            pipe.hset(self.key, item_id, updated.to_json())
            return updated

        return await self.redis.transaction(_apply, self.key, value_from_callable=True)

    async def remove(self, item_id: str) -> bool:
        """
        Removes an item (manual action).

        Returns:
            True if the item existed
        """
        removed = await self.redis.hdel(self.key, item_id)
        if removed:
            logger.info(f"[DLQ] Manually removed {item_id}")
        return bool(removed)

    async def clear(self) -> int:
        """
        Removes every item (manual action).

        Items are removed one by one; a failure on one item is logged and the
        rest are still removed.

        Returns:
            Number of items removed
        """
        removed = 0
        for item_id in await self.redis.hkeys(self.key):
            try:
                if await self.redis.hdel(self.key, item_id):
                    removed += 1
            except Exception as e:
                logger.error(f"[DLQ] Could not remove {item_id}: {e}")

        logger.warning(f"[DLQ] Cleared {removed} items")
        return removed

    async def stats(self) -> DLQStats:
        """Aggregate statistics over the current items."""
        stats = DLQStats()
        oldest: Optional[datetime] = None

        for item in await self._load_all():
            stats.count += 1
            stats.by_event_type[item.event_type] = stats.by_event_type.get(item.event_type, 0) + 1
            if item.max_retries_reached:
                stats.max_retries_reached += 1
            if oldest is None or item.created_at < oldest:
                oldest = item.created_at

        stats.oldest_item = oldest.isoformat() if oldest else None
        return stats

    async def over_threshold(self, limit: int) -> bool:
        """True when the queue holds more than `limit` items."""
        return (await self.stats()).count > limit
