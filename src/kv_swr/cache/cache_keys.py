"""Cache key builders."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


def cache_key(request: httpx.Request, prefix: str = "") -> str:
    """Build the cache key for *request*.

    Always called with the original request, never the proxied one, so the
    key survives changes to the proxy target.
    """
    return f"{prefix}{request.url}"
