"""Exceptions raised by the SWR cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class SwrError(Exception):
    """Base class for all kv_swr errors."""


class NotMatchedError(SwrError):
    """No cached response exists and the caller asked not to fetch one."""

    def __init__(self, message: str, request: httpx.Request) -> None:
        super().__init__(message)
        self.request = request


class DecodeError(SwrError):
    """A stored cache record is present but structurally invalid."""
