"""Shared fixtures: in-memory KV store, mock origin, recording scheduler."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import httpx
import pytest

from kv_swr.background import AsyncioScheduler
from kv_swr.cache.backend import KVNamespace

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from kv_swr.background import BackgroundTask

ORIGIN = "http://origin.test"

_STATUS_RE = re.compile(r"/status-(\d{3})/")


class MemoryKV(KVNamespace):
    """Dict-backed KVNamespace that records the expiration hints it receives."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.expirations: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def put(self, key: str, value: str, *, expiration_ttl: int) -> None:
        self.data[key] = value
        self.expirations[key] = expiration_ttl

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.expirations.pop(key, None)


class RecordingScheduler:
    """Counts scheduled tasks and runs them on an :class:`AsyncioScheduler`."""

    def __init__(self) -> None:
        self.calls = 0
        self._inner = AsyncioScheduler()

    def __call__(self, task: BackgroundTask) -> None:
        self.calls += 1
        self._inner(task)

    async def drain(self) -> None:
        await self._inner.drain()


class Origin:
    """Mock origin: status from a ``/status-NNN/`` segment, body echoes the path."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.fail = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            raise httpx.ConnectError("origin unreachable", request=request)
        path = request.url.path
        match = _STATUS_RE.search(path)
        status = int(match.group(1)) if match else 200
        return httpx.Response(status, text=f"this is origin response; {path}")


@pytest.fixture
def kv() -> MemoryKV:
    return MemoryKV()


@pytest.fixture
def origin() -> Origin:
    return Origin()


@pytest.fixture
async def client(origin: Origin) -> AsyncGenerator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(origin)) as c:
        yield c


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def make_request():
    """Factory fixture for GET requests against the mock origin."""

    def _make(path: str) -> httpx.Request:
        return httpx.Request("GET", f"{ORIGIN}{path}")

    return _make
