"""
Distributed cache client.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation for production. The service only needs to know whether the
cache is reachable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import redis
from redis import exceptions as redis_exceptions


class CacheClient(Protocol):
    def ping(self) -> bool:
        ...


@dataclass
class InMemoryCacheClient:
    """Always-reachable cache for testing/dev."""

    reachable: bool = True

    def ping(self) -> bool:
        return self.reachable


@dataclass
class RedisCacheClient:
    url: str

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError):
            # Managed Redis drops idle connections; reconnect on the next call.
            self.client = redis.Redis.from_url(self.url)
            return False
