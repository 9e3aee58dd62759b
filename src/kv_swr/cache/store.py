"""HTTP response cache on top of a :class:`~kv_swr.cache.backend.KVNamespace`."""

from __future__ import annotations

import codecs
import logging
from dataclasses import dataclass
from email.message import Message
from typing import TYPE_CHECKING

import httpx

from kv_swr.config import STORE_EXPIRATION_TTL
from kv_swr.errors import DecodeError

from .cache_keys import cache_key
from .codec import decode, encode

if TYPE_CHECKING:
    from .backend import KVNamespace

logger = logging.getLogger(__name__)

# The body is stored decoded, so framing headers no longer describe it.
# Cookies belong to the client that triggered the fetch, not to every reader.
_DROPPED_HEADERS = frozenset(
    {"content-encoding", "content-length", "transfer-encoding", "set-cookie"}
)


@dataclass(frozen=True)
class MatchInfo:
    """Freshness of a cache lookup; ``remaining_time`` is whole seconds, >= 0."""

    remaining_time: int


def header_to_json(response: httpx.Response) -> dict[str, str]:
    """Flatten response headers into a JSON-safe mapping."""
    return {
        name: value
        for name, value in response.headers.items()
        if name not in _DROPPED_HEADERS
    }


def _charset(headers: dict[str, str]) -> str:
    message = Message()
    message["content-type"] = headers.get("content-type", "")
    charset = message.get_content_charset()
    if charset is None:
        return "utf-8"
    try:
        return codecs.lookup(charset).name
    except LookupError:
        return "utf-8"


def restore_response(headers: dict[str, str], body: str) -> httpx.Response:
    """Rebuild a response object from a stored record.

    The body is re-encoded with the stored charset so ``response.text``
    reads back what was cached.
    """
    content = body.encode(_charset(headers), errors="replace")
    return httpx.Response(200, headers=headers, content=content)


class KVCacheStore:
    """Reads and writes cached responses keyed by the original request."""

    def __init__(
        self,
        kv: KVNamespace,
        ttl: int,
        *,
        expiration_ttl: int = STORE_EXPIRATION_TTL,
        key_prefix: str = "",
    ) -> None:
        if expiration_ttl <= ttl:
            msg = f"expiration_ttl ({expiration_ttl}) must exceed ttl ({ttl})"
            raise ValueError(msg)
        self._kv = kv
        self._ttl = ttl
        self._expiration_ttl = expiration_ttl
        self._key_prefix = key_prefix

    def key_for(self, request: httpx.Request) -> str:
        return cache_key(request, self._key_prefix)

    async def put(self, request: httpx.Request, response: httpx.Response) -> None:
        """Store *response* under *request*, fresh for the configured TTL."""
        await response.aread()
        value = encode(header_to_json(response), response.text, self._ttl)
        await self._kv.put(
            self.key_for(request), value, expiration_ttl=self._expiration_ttl
        )

    async def match(
        self, request: httpx.Request
    ) -> tuple[httpx.Response | None, MatchInfo]:
        """Look up *request*; malformed records count as a miss."""
        key = self.key_for(request)
        raw = await self._kv.get(key)
        if raw is None:
            return None, MatchInfo(remaining_time=0)

        try:
            record = decode(raw)
        except DecodeError as exc:
            logger.warning("Ignoring unreadable cache record %s: %s", key, exc)
            return None, MatchInfo(remaining_time=0)

        return (
            restore_response(record.headers, record.body),
            MatchInfo(remaining_time=record.remaining_time),
        )

    async def delete(self, request: httpx.Request) -> None:
        await self._kv.delete(self.key_for(request))
