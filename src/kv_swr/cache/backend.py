"""Key-value backends the cache store writes records into."""

from __future__ import annotations

import abc
import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)

_shared_client: redis.Redis | None = None


class KVNamespace(abc.ABC):
    """Minimal string key-value store with a per-key expiration hint."""

    @abc.abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or *None* when the key is absent."""

    @abc.abstractmethod
    async def put(self, key: str, value: str, *, expiration_ttl: int) -> None:
        """Store *value*, letting the backend drop it after *expiration_ttl* seconds."""

    @abc.abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; a missing key is not an error."""


class RedisKVBackend(KVNamespace):
    """:class:`KVNamespace` on top of ``redis.asyncio``."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def shared(cls) -> RedisKVBackend:
        """Bind to the process-wide client opened by :func:`connect`."""
        if _shared_client is None:
            msg = "Redis backend is not connected; call connect() first"
            raise RuntimeError(msg)
        return cls(_shared_client)

    async def get(self, key: str) -> str | None:
        raw = await self._client.get(key)
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return raw

    async def put(self, key: str, value: str, *, expiration_ttl: int) -> None:
        await self._client.set(key, value, ex=expiration_ttl)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client


async def connect(url: str) -> RedisKVBackend:
    """Open the process-wide Redis client and return a backend bound to it."""
    global _shared_client
    if _shared_client is None:
        _shared_client = redis.from_url(url, decode_responses=True)
        logger.info("Redis cache backend connected: %s", url)
    return RedisKVBackend(_shared_client)


async def disconnect() -> None:
    """Close the process-wide Redis client, if open."""
    global _shared_client
    if _shared_client is None:
        return
    client, _shared_client = _shared_client, None
    await client.aclose()
    logger.info("Redis cache backend disconnected")
