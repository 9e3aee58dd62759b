"""Stale-while-revalidate HTTP response cache on a key-value store."""

from .background import AsyncioScheduler, BackgroundTasksScheduler
from .cache import KVCacheStore, KVNamespace, MatchInfo, RedisKVBackend
from .config import SwrOptions, SwrSettings
from .errors import DecodeError, NotMatchedError, SwrError
from .swr import Swr, make_swr

__all__ = [
    "AsyncioScheduler",
    "BackgroundTasksScheduler",
    "DecodeError",
    "KVCacheStore",
    "KVNamespace",
    "MatchInfo",
    "NotMatchedError",
    "RedisKVBackend",
    "Swr",
    "SwrError",
    "SwrOptions",
    "SwrSettings",
    "make_swr",
]
