"""
Statement Cache.

Read-through cache for derived ledger views, backed by Redis.
Keys are grouped under one tag set per business so a successful
journal write can flush every cached view of that business at once.
"""

import json
import logging
from typing import Any, Optional

from redis.exceptions import RedisError

import backend.ledger.core.redis_client as redis_client_module
from backend.ledger.core.config import settings

logger = logging.getLogger("ledger.cache")


class StatementCache:
    """
    Cache keyed by (business_id, kind, params) with tag invalidation.

    Redis errors never fail a read: get() degrades to a miss and
    set()/invalidate_business() log and carry on.
    """

    def __init__(
        self,
        client: Any = None,
        ttl_seconds: Optional[int] = None,
        prefix: Optional[str] = None,
        enabled: Optional[bool] = None,
    ):
        self._client = client
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.statement_cache_ttl_seconds
        self.prefix = prefix or settings.cache_key_prefix
        self.enabled = settings.statement_cache_enabled if enabled is None else enabled

    @property
    def client(self):
        # Resolved per call so a swapped module-level client is honoured
        return self._client or redis_client_module.redis_client

    def key(self, business_id: int, kind: str, params: str) -> str:
        return f"{self.prefix}:stmt:{business_id}:{kind}:{params}"

    def tag(self, business_id: int) -> str:
        return f"{self.prefix}:tag:{business_id}"

    async def get(self, business_id: int, kind: str, params: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw = await self.client.get(self.key(business_id, kind, params))
        except RedisError as exc:
            logger.warning("Statement cache read failed for business %s: %s", business_id, exc)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, business_id: int, kind: str, params: str, data: Any) -> None:
        if not self.enabled:
            return
        key = self.key(business_id, kind, params)
        tag = self.tag(business_id)
        try:
            await self.client.set(key, json.dumps(data), ex=self.ttl_seconds)
            await self.client.sadd(tag, key)
            await self.client.expire(tag, self.ttl_seconds)
        except RedisError as exc:
            logger.warning("Statement cache write failed for business %s: %s", business_id, exc)

    async def invalidate_business(self, business_id: int) -> int:
        """
        Drop every cached view for a business.

        Returns:
            Number of cached keys removed
        """
        if not self.enabled:
            return 0
        tag = self.tag(business_id)
        try:
            keys = await self.client.smembers(tag)
            if keys:
                await self.client.delete(*keys)
            await self.client.delete(tag)
        except RedisError as exc:
            logger.warning("Statement cache invalidation failed for business %s: %s", business_id, exc)
            return 0
        return len(keys)


statement_cache = StatementCache()
