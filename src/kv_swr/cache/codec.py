"""Serialisation of cached responses into key-value store records.

Two record shapes exist in stores:

- current: ``{"headers", "body", "expireAt"}`` with ``expireAt`` in epoch
  milliseconds
- legacy: ``{"headers", "body", "cacheTtl"}`` with ``cacheTtl`` an ISO-8601
  timestamp

Only the current shape is ever written. Both are read and normalised into a
:class:`DecodedRecord` straight away.
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kv_swr.errors import DecodeError


class CurrentRecord(BaseModel):
    """Record shape written by :func:`encode`."""

    model_config = ConfigDict(populate_by_name=True)

    headers: dict[str, str] = Field(default_factory=dict)
    body: str
    expire_at: int = Field(alias="expireAt")

    def expiry_ms(self) -> int:
        return self.expire_at


class LegacyRecord(BaseModel):
    """Older record shape keyed by an absolute ``cacheTtl`` timestamp."""

    model_config = ConfigDict(populate_by_name=True)

    headers: dict[str, str] = Field(default_factory=dict)
    body: str
    cache_ttl: datetime = Field(alias="cacheTtl")

    def expiry_ms(self) -> int:
        expiry = self.cache_ttl
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return math.floor(expiry.timestamp() * 1000)


@dataclass(frozen=True)
class DecodedRecord:
    """A stored response with its remaining freshness in whole seconds."""

    headers: dict[str, str]
    body: str
    remaining_time: int


def _now_ms(now: float | None) -> int:
    return math.floor((time.time() if now is None else now) * 1000)


def encode(
    headers: dict[str, str], body: str, ttl: int, *, now: float | None = None
) -> str:
    """Serialise a response into a current-shape record fresh for *ttl* seconds."""
    record = CurrentRecord(
        headers=headers,
        body=body,
        expire_at=_now_ms(now) + ttl * 1000,
    )
    return record.model_dump_json(by_alias=True)


def parse_record(value: str | bytes) -> CurrentRecord | LegacyRecord:
    """Parse a raw store value into one of the known record shapes."""
    try:
        raw = json.loads(value)
    except (TypeError, ValueError) as exc:
        msg = f"Cache record is not valid JSON: {exc}"
        raise DecodeError(msg) from exc

    if not isinstance(raw, dict):
        msg = f"Cache record must be an object, got {type(raw).__name__}"
        raise DecodeError(msg)

    if "expireAt" in raw:
        model: type[CurrentRecord | LegacyRecord] = CurrentRecord
    elif "cacheTtl" in raw:
        model = LegacyRecord
    else:
        msg = "Cache record has neither 'expireAt' nor 'cacheTtl'"
        raise DecodeError(msg)

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        msg = f"Malformed {model.__name__}: {exc}"
        raise DecodeError(msg) from exc


def decode(value: str | bytes, *, now: float | None = None) -> DecodedRecord:
    """Decode a stored record, computing its remaining freshness.

    Raises:
        DecodeError: If the value matches no known record shape.
    """
    record = parse_record(value)
    remaining_ms = record.expiry_ms() - _now_ms(now)
    return DecodedRecord(
        headers=record.headers,
        body=record.body,
        remaining_time=max(math.floor(remaining_ms / 1000), 0),
    )
