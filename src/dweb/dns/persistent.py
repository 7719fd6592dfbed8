"""Persistent caches used as a last resort when live resolution fails.

The resolver writes every successful live resolution to the persistent cache
and reads from it only after every live attempt has failed. A read either
returns a previously stored key or re-raises the error it was given.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from redis import asyncio as redis

from dweb.dns.errors import ResolutionError

logger = logging.getLogger(__name__)


class PersistentCache(ABC):
    """Durable name to key store."""

    @abstractmethod
    async def read(self, name: str, err: ResolutionError) -> str:
        """
        Return the stored key for name, or raise err if there is none.

        Args:
            name: Normalized name that failed to resolve
            err: The error raised by live resolution
        """

    @abstractmethod
    async def write(self, name: str, key: str, ttl: int) -> None:
        """Store the key a name resolved to, along with the record TTL."""


class RedisPersistentCache(PersistentCache):
    """
    Persistent cache backed by Redis.

    Keys are stored under "<prefix><name>". The record TTL is not used as a Redis
    expiry since the point of this cache is to answer after the record would have
    expired; max_age optionally bounds how long a stale answer is kept.
    """

    def __init__(
        self,
        client: redis.Redis,
        prefix: str = "dweb_dns:",
        max_age: Optional[int] = None,
    ) -> None:
        self.client = client
        self.prefix = prefix
        self.max_age = max_age

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    async def read(self, name: str, err: ResolutionError) -> str:
        value = await self.client.get(self._key(name))
        if value is None:
            raise err
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        logger.debug("Persistent cache hit for name %s: %s", name, value)
        return value

    async def write(self, name: str, key: str, ttl: int) -> None:
        await self.client.set(self._key(name), key, ex=self.max_age)
