"""Key/value cache with TTL, best-effort only"""
from typing import Any, Callable, Dict, Iterable, Optional, Tuple
import json
import logging
import time

import redis

logger = logging.getLogger(__name__)

CACHE_ERRORS = (redis.RedisError, OSError, ValueError, TypeError)


class Cache:
    """Raw string cache backend"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str, ttl: int) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def remove_all(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.remove(key)


class RedisCache(Cache):
    def __init__(self, client: redis.Redis, prefix: str = "casework:"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> Optional[str]:
        return self.client.get(self.prefix + key)

    def put(self, key: str, value: str, ttl: int) -> None:
        self.client.setex(self.prefix + key, ttl, value)

    def remove(self, key: str) -> None:
        self.client.delete(self.prefix + key)

    def remove_all(self, keys: Iterable[str]) -> None:
        keys = [self.prefix + key for key in keys]
        if keys:
            self.client.delete(*keys)


class MemoryCache(Cache):
    """In-process cache, used for single-worker deployments and tests"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def put(self, key: str, value: str, ttl: int) -> None:
        self._entries[key] = (value, self.clock() + ttl)

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self):
        return len(self._entries)


class CacheService:
    """JSON helpers over a cache backend; every failure is treated as a miss"""

    def __init__(self, backend: Cache, settings):
        self.backend = backend
        self.short_ttl = settings.cache_short
        self.medium_ttl = settings.cache_medium
        self.long_ttl = settings.cache_long
        self.very_long_ttl = settings.cache_very_long

    def get_json(self, key: str) -> Optional[Any]:
        try:
            raw = self.backend.get(key)
            return json.loads(raw) if raw is not None else None
        except CACHE_ERRORS as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    def put_json(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.backend.put(key, json.dumps(value, ensure_ascii=False, default=str), ttl)
        except CACHE_ERRORS as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def remove(self, key: str) -> None:
        try:
            self.backend.remove(key)
        except CACHE_ERRORS as e:
            logger.warning(f"Cache remove failed for {key}: {e}")

    def remove_all(self, keys: Iterable[str]) -> None:
        try:
            self.backend.remove_all(list(keys))
        except CACHE_ERRORS as e:
            logger.warning(f"Cache bulk remove failed: {e}")
