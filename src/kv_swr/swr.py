"""Stale-while-revalidate engine for a single request.

An :class:`Swr` is bound to one incoming request. :meth:`Swr.match` answers
from the cache whenever an entry exists, fresh or stale, and hands a
revalidation to the scheduler whenever the entry is stale, missing, or the
caller forces it. The caller never waits on revalidation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

import redis.asyncio as redis

from kv_swr.cache.backend import KVNamespace, RedisKVBackend
from kv_swr.cache.store import KVCacheStore
from kv_swr.config import SwrOptions
from kv_swr.errors import NotMatchedError

if TYPE_CHECKING:
    import httpx

    from kv_swr.background import Schedule

logger = logging.getLogger(__name__)

OnNotMatched = Literal["fetch", "error"]


class Swr:
    """Cache operations bound to one original request."""

    def __init__(
        self,
        request: httpx.Request,
        store: KVCacheStore,
        schedule: Schedule,
        *,
        client: httpx.AsyncClient,
        options: SwrOptions | None = None,
    ) -> None:
        self._request = request
        self._store = store
        self._schedule = schedule
        self._client = client
        self._options = options or SwrOptions()
        self._log_level = logging.INFO if self._options.debug else logging.DEBUG

    @property
    def request(self) -> httpx.Request:
        return self._request

    def _log(self, msg: str, *args: object) -> None:
        logger.log(self._log_level, msg, *args)

    async def _fetch(self) -> httpx.Response:
        # The proxy runs on every fetch; only the original request keys the cache.
        return await self._client.send(self._options.proxy(self._request))

    async def match(
        self,
        *,
        force_revalidate: bool = False,
        on_not_matched: OnNotMatched = "fetch",
    ) -> httpx.Response:
        """Return the cached response, revalidating in the background when due.

        Args:
            force_revalidate: Schedule a revalidation even for a fresh hit.
            on_not_matched: On a miss, ``"fetch"`` returns a direct origin
                response; ``"error"`` raises :class:`NotMatchedError`.

        Raises:
            NotMatchedError: On a miss with ``on_not_matched="error"``.
        """
        if on_not_matched not in ("fetch", "error"):
            msg = f"on_not_matched must be 'fetch' or 'error', got {on_not_matched!r}"
            raise ValueError(msg)

        cached, info = await self._store.match(self._request)

        if force_revalidate or info.remaining_time < 1 or cached is None:
            self._schedule(self._revalidate_in_background)

        if cached is not None:
            self._log("hit the cache by KV: %s", self._request.url)
            return cached

        self._log("no hit caches: %s", self._request.url)
        if on_not_matched == "error":
            raise NotMatchedError("Caches are not matched", self._request)
        # Runs alongside the scheduled revalidation; a cold miss costs two fetches.
        return await self._fetch()

    async def revalidate(self) -> None:
        """Refetch the origin, then store (2xx), evict (4xx) or keep the entry."""
        self._log("revalidate the cache: %s", self._request.url)
        response = await self._fetch()
        status = response.status_code

        if 400 <= status <= 499:
            await self.clear()
        elif 200 <= status <= 299:
            await self.put(response)
        else:
            self._log("kept the cache on status %d: %s", status, self._request.url)

    async def _revalidate_in_background(self) -> None:
        try:
            await self.revalidate()
        except Exception:
            logger.warning(
                "Revalidation failed for %s", self._request.url, exc_info=True
            )

    async def put(self, response: httpx.Response) -> None:
        """Cache *response* under the original request."""
        await self._store.put(self._request, response)
        self._log("created the cache: %s", self._request.url)

    async def clear(self) -> None:
        """Remove the cached entry for the original request."""
        await self._store.delete(self._request)
        self._log("deleted the cache: %s", self._request.url)


def make_swr(
    request: httpx.Request,
    kv: KVNamespace | redis.Redis,
    schedule: Schedule,
    *,
    client: httpx.AsyncClient,
    options: SwrOptions | None = None,
) -> Swr:
    """Build an :class:`Swr` for *request* on top of *kv*.

    *kv* is either a :class:`KVNamespace` or a raw ``redis.asyncio`` client.
    """
    options = options or SwrOptions()
    if isinstance(kv, redis.Redis):
        kv = RedisKVBackend(kv)
    store = KVCacheStore(
        kv,
        options.ttl,
        expiration_ttl=options.store_expiration_ttl,
        key_prefix=options.key_prefix,
    )
    return Swr(request, store, schedule, client=client, options=options)
