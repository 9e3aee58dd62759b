"""KVCacheStore: expiration metadata, freshness and response restoration."""

from __future__ import annotations

import json

import httpx
import pytest

from kv_swr.cache.store import KVCacheStore, MatchInfo, header_to_json, restore_response
from kv_swr.config import STORE_EXPIRATION_TTL


async def test_put_uses_long_store_expiration(kv, make_request):
    store = KVCacheStore(kv, 60)
    request = make_request("/page/")

    await store.put(request, httpx.Response(200, text="cached"))

    assert kv.expirations[str(request.url)] == STORE_EXPIRATION_TTL
    stored = json.loads(kv.data[str(request.url)])
    assert stored["body"] == "cached"
    assert "expireAt" in stored
    assert "cacheTtl" not in stored


async def test_match_miss_returns_none_and_zero(kv, make_request):
    store = KVCacheStore(kv, 60)

    response, info = await store.match(make_request("/missing/"))

    assert response is None
    assert info == MatchInfo(remaining_time=0)


async def test_match_restores_headers_and_body(kv, make_request):
    store = KVCacheStore(kv, 60)
    request = make_request("/page/")
    await store.put(
        request,
        httpx.Response(200, headers={"x-origin": "yes"}, text="cached body"),
    )

    response, info = await store.match(request)

    assert response is not None
    assert response.status_code == 200
    assert response.text == "cached body"
    assert response.headers["x-origin"] == "yes"
    assert info.remaining_time >= 59


async def test_zero_ttl_entry_is_present_but_stale(kv, make_request):
    store = KVCacheStore(kv, 0)
    request = make_request("/page/")
    await store.put(request, httpx.Response(200, text="stale"))

    response, info = await store.match(request)

    assert response is not None
    assert response.text == "stale"
    assert info.remaining_time == 0


async def test_unreadable_record_is_a_miss(kv, make_request, caplog):
    store = KVCacheStore(kv, 60)
    request = make_request("/corrupt/")
    kv.data[str(request.url)] = "{not json"

    response, info = await store.match(request)

    assert response is None
    assert info.remaining_time == 0
    assert "unreadable cache record" in caplog.text


async def test_delete_is_idempotent(kv, make_request):
    store = KVCacheStore(kv, 60)
    request = make_request("/page/")
    await store.put(request, httpx.Response(200, text="x"))

    await store.delete(request)
    await store.delete(request)

    assert await store.match(request) == (None, MatchInfo(remaining_time=0))


async def test_key_prefix_namespaces_entries(kv, make_request):
    store = KVCacheStore(kv, 60, key_prefix="swr:")
    request = make_request("/page/")

    await store.put(request, httpx.Response(200, text="x"))

    assert list(kv.data) == [f"swr:{request.url}"]


def test_store_expiration_must_outlive_ttl(kv):
    with pytest.raises(ValueError, match="must exceed"):
        KVCacheStore(kv, 120, expiration_ttl=60)


def test_header_to_json_drops_framing_headers():
    response = httpx.Response(
        200,
        headers={"Content-Encoding": "identity", "Content-Type": "text/html", "X-Id": "7"},
        content=b"",
    )

    headers = header_to_json(response)

    assert headers == {"content-type": "text/html", "x-id": "7"}


def test_restore_response_keeps_stored_content_type():
    response = restore_response({"content-type": "application/json"}, '{"a": 1}')

    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"a": 1}


async def test_non_utf8_body_reads_back_unchanged(kv, make_request):
    store = KVCacheStore(kv, 60)
    request = make_request("/latin-1/")
    await store.put(
        request,
        httpx.Response(
            200,
            headers={"content-type": "text/html; charset=iso-8859-1"},
            content="café".encode("latin-1"),
        ),
    )

    response, _ = await store.match(request)

    assert response is not None
    assert response.text == "café"
    assert response.content == "café".encode("latin-1")


def test_restore_response_with_unknown_charset_falls_back_to_utf8():
    response = restore_response({"content-type": "text/plain; charset=x-bogus"}, "naïve")

    assert response.content == "naïve".encode()


async def test_set_cookie_is_not_cached(kv, make_request):
    store = KVCacheStore(kv, 60)
    request = make_request("/with-cookies/")
    origin_response = httpx.Response(
        200,
        headers=[
            ("set-cookie", "a=1; Expires=Wed, 21 Oct 2026 07:28:00 GMT"),
            ("set-cookie", "b=2"),
            ("x-id", "7"),
        ],
        text="body",
    )

    await store.put(request, origin_response)
    response, _ = await store.match(request)

    assert response is not None
    assert "set-cookie" not in response.headers
    assert response.headers["x-id"] == "7"
    assert "set-cookie" not in json.loads(kv.data[str(request.url)])["headers"]
