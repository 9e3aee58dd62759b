"""Cache storage for kv_swr."""

from .backend import KVNamespace, RedisKVBackend, connect, disconnect
from .cache_keys import cache_key
from .codec import CurrentRecord, DecodedRecord, LegacyRecord, decode, encode
from .store import KVCacheStore, MatchInfo, header_to_json, restore_response

__all__ = [
    "CurrentRecord",
    "DecodedRecord",
    "KVCacheStore",
    "KVNamespace",
    "LegacyRecord",
    "MatchInfo",
    "RedisKVBackend",
    "cache_key",
    "connect",
    "decode",
    "disconnect",
    "encode",
    "header_to_json",
    "restore_response",
]
