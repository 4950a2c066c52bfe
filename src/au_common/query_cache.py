"""Process-wide read-through query cache with explicit invalidation.

Cache-aside:
  1. get(key): fresh entry → hit; missing or older than its stale time → MISS
     (a stale entry is evicted by that read)
  2. on MISS the caller loads from PostgreSQL and set()s the result
  3. mutations call invalidate(key_prefix); listeners subscribed to a
     matching prefix are notified and other workers are told via Redis
     Pub/Sub (channel `cache:invalidate`)

Keys are tuples; invalidation matches by prefix, so ("deposits",) drops
every user's deposits while ("deposits", user_id) drops only one.
"""

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from redis.exceptions import RedisError

from src.au_common.redis_client import get_redis

logger = logging.getLogger(__name__)

INVALIDATION_CHANNEL = "cache:invalidate"

CacheKey = tuple[str, ...]
Listener = Callable[[CacheKey, "CachedValue | None"], None]


class _Miss(Enum):
    MISS = "miss"


MISS = _Miss.MISS


@dataclass(frozen=True)
class CachedValue:
    value: Any
    stored_at: float
    stale_seconds: float

    def is_stale(self, now: float) -> bool:
        return now - self.stored_at >= self.stale_seconds


class QueryKeys:
    """Cache key factory: one family per entity."""

    METAL_PRICES: CacheKey = ("metal-prices",)
    USERS: CacheKey = ("users",)
    ADMIN_DEPOSITS: CacheKey = ("admin-deposits",)
    ADMIN_WITHDRAWALS: CacheKey = ("admin-withdrawals",)
    GOLDSMITHS: CacheKey = ("goldsmiths",)
    ACTIVITY_LOG: CacheKey = ("activity-log",)
    FEE_RULES: CacheKey = ("fee-rules",)
    PENDING_BUYS: CacheKey = ("pending-buys",)

    @staticmethod
    def portfolio_summary(user_id: str) -> CacheKey:
        return ("portfolio-summary", user_id)

    @staticmethod
    def deposits(user_id: str) -> CacheKey:
        return ("deposits", user_id)

    @staticmethod
    def withdrawals(user_id: str) -> CacheKey:
        return ("withdrawals", user_id)

    @staticmethod
    def positions(user_id: str) -> CacheKey:
        return ("positions", user_id)


class InvalidationPublisher(Protocol):
    async def publish(self, key: CacheKey) -> None: ...


class RedisInvalidationPublisher:
    """Fans invalidations out to other workers. Redis being down never fails a request."""

    async def publish(self, key: CacheKey) -> None:
        try:
            redis = await get_redis()
            await redis.publish(INVALIDATION_CHANNEL, json.dumps(list(key)))
        except (RedisError, OSError) as e:
            logger.warning("Cache invalidation publish failed for %s: %s", key, e)


def _matches(key: CacheKey, prefix: CacheKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    def __init__(
        self,
        publisher: InvalidationPublisher | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[CacheKey, CachedValue] = {}
        self._listeners: list[tuple[CacheKey, Listener]] = []
        self._publisher = publisher
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> CachedValue | _Miss:
        entry = self._entries.get(key)
        if entry is None:
            return MISS
        if entry.is_stale(self._clock()):
            # stale entries never outlive their first read
            del self._entries[key]
            return MISS
        return entry

    def set(self, key: CacheKey, value: Any, stale_seconds: float) -> CachedValue:
        entry = CachedValue(value=value, stored_at=self._clock(), stale_seconds=stale_seconds)
        self._entries[key] = entry
        self._notify(key, entry)
        return entry

    def drop(self, prefix: CacheKey) -> int:
        """Remove local entries under `prefix` without telling other workers."""
        doomed = [k for k in self._entries if _matches(k, prefix)]
        for k in doomed:
            del self._entries[k]
        self._notify(prefix, None)
        return len(doomed)

    async def invalidate(self, prefix: CacheKey) -> int:
        dropped = self.drop(prefix)
        if self._publisher is not None:
            await self._publisher.publish(prefix)
        return dropped

    async def get_or_load(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[Any]],
        stale_seconds: float,
    ) -> Any:
        cached = self.get(key)
        if cached is not MISS:
            return cached.value
        value = await loader()
        self.set(key, value, stale_seconds)
        return value

    def subscribe(self, prefix: CacheKey, listener: Listener) -> Callable[[], None]:
        """Register a listener for sets/invalidations under `prefix`; returns an unsubscribe callable."""
        item = (prefix, listener)
        self._listeners.append(item)

        def unsubscribe() -> None:
            if item in self._listeners:
                self._listeners.remove(item)

        return unsubscribe

    def handle_remote_message(self, data: str) -> None:
        """Apply an invalidation received on INVALIDATION_CHANNEL."""
        try:
            key = tuple(str(part) for part in json.loads(data))
        except (ValueError, TypeError):
            logger.warning("Ignoring malformed cache invalidation message: %r", data)
            return
        self.drop(key)

    def _notify(self, key: CacheKey, entry: CachedValue | None) -> None:
        for prefix, listener in list(self._listeners):
            # a listener cares if either key is under the other
            if _matches(key, prefix) or _matches(prefix, key):
                try:
                    listener(key, entry)
                except Exception:
                    logger.exception("Cache listener failed for %s", key)


async def listen_for_invalidations(cache: "QueryCache", retry_seconds: float = 5.0) -> None:
    """Background task: drop local entries other workers invalidated.

    Reconnects after Redis errors; runs until cancelled.
    """
    while True:
        try:
            redis = await get_redis()
            pubsub = redis.pubsub()
            await pubsub.subscribe(INVALIDATION_CHANNEL)
            try:
                async for message in pubsub.listen():
                    if message.get("type") == "message":
                        cache.handle_remote_message(message["data"])
            finally:
                await pubsub.aclose()
        except (RedisError, OSError) as e:
            logger.warning("Cache invalidation listener lost Redis: %s", e)
        await asyncio.sleep(retry_seconds)


query_cache = QueryCache(publisher=RedisInvalidationPublisher())
