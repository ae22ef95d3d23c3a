import json
import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import redis.asyncio as redis

logger = logging.getLogger("HotelProxy-Cache")


# ═══════════════════════════════════════════════════════════════════
# CACHE STORE PROTOCOL
# ═══════════════════════════════════════════════════════════════════

@runtime_checkable
class CacheStore(Protocol):
    """Key-value store holding JSON documents."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def get_many(self, keys: List[str]) -> Dict[str, Any]:
        """Batch read. Missing keys are absent from the result."""
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def delete_prefix(self, prefix: str) -> int:
        ...

    async def keys(self, prefix: str) -> List[str]:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


# ═══════════════════════════════════════════════════════════════════
# REDIS BACKEND
# ═══════════════════════════════════════════════════════════════════

class RedisCacheStore:
    """
    Redis-backed store. Values are stored as JSON strings, no TTL:
    static hotel metadata is never expired, only overwritten.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheStore":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client)

    async def get(self, key: str) -> Optional[Any]:
        data = await self.client.get(key)
        if data is None:
            return None
        return json.loads(data)

    async def get_many(self, keys: List[str]) -> Dict[str, Any]:
        if not keys:
            return {}
        values = await self.client.mget(keys)
        return {
            key: json.loads(value)
            for key, value in zip(keys, values)
            if value is not None
        }

    async def set(self, key: str, value: Any) -> None:
        await self.client.set(key, json.dumps(value))

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def delete_prefix(self, prefix: str) -> int:
        removed = 0
        async for key in self.client.scan_iter(match=f"{prefix}*"):
            removed += await self.client.delete(key)
        return removed

    async def keys(self, prefix: str) -> List[str]:
        return [key async for key in self.client.scan_iter(match=f"{prefix}*")]

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("🛑 Redis connection closed")


# ═══════════════════════════════════════════════════════════════════
# IN-MEMORY BACKEND
# ═══════════════════════════════════════════════════════════════════

class InMemoryCacheStore:
    """Dict-backed store for local development and tests."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def get_many(self, keys: List[str]) -> Dict[str, Any]:
        return {key: json.loads(self._data[key]) for key in keys if key in self._data}

    async def set(self, key: str, value: Any) -> None:
        # Serialize on write so callers can't mutate stored state
        self._data[key] = json.dumps(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        doomed = await self.keys(prefix)
        for key in doomed:
            del self._data[key]
        return len(doomed)

    async def keys(self, prefix: str) -> List[str]:
        return [key for key in self._data if key.startswith(prefix)]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._data.clear()


def create_cache_store(backend: str, redis_url: str) -> CacheStore:
    """Build the configured store backend."""
    if backend == "memory":
        logger.info("⚡ Using in-memory cache store")
        return InMemoryCacheStore()
    if backend != "redis":
        raise ValueError(f"Unknown CACHE_BACKEND: {backend}")
    logger.info(f"⚡ Using Redis cache store at {redis_url}")
    return RedisCacheStore.from_url(redis_url)
