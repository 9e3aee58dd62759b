"""SWR configuration via environment variables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

# One year; the backend only reaps entries the SWR layer has long stopped serving.
STORE_EXPIRATION_TTL = 60 * 60 * 24 * 365


class SwrSettings(BaseSettings):
    """Settings loaded from environment / .env file."""

    redis_url: str = "redis://localhost:6379/0"

    # Freshness window in seconds
    ttl: int = 60
    # Store-level expiration hint in seconds (must outlive ``ttl``)
    store_expiration_ttl: int = STORE_EXPIRATION_TTL
    key_prefix: str = ""
    debug: bool = False

    model_config = SettingsConfigDict(
        env_prefix="SWR_", env_file=".env", extra="ignore"
    )


def _identity(request: httpx.Request) -> httpx.Request:
    return request


@dataclass(frozen=True)
class SwrOptions:
    """Configuration value threaded into a :class:`~kv_swr.swr.Swr` engine.

    Attributes:
        ttl: Freshness window of a cached response, in seconds.
        proxy: Request transform applied before every origin fetch.
        debug: Log engine decisions at INFO instead of DEBUG.
        store_expiration_ttl: Expiration hint handed to the key-value backend.
        key_prefix: Namespace prepended to every cache key.
    """

    ttl: int = 60
    proxy: Callable[[httpx.Request], httpx.Request] = field(default=_identity)
    debug: bool = False
    store_expiration_ttl: int = STORE_EXPIRATION_TTL
    key_prefix: str = ""

    def __post_init__(self) -> None:
        if self.ttl < 0:
            msg = f"ttl must be >= 0, got {self.ttl}"
            raise ValueError(msg)
        if self.store_expiration_ttl <= self.ttl:
            msg = (
                f"store_expiration_ttl ({self.store_expiration_ttl}) must exceed "
                f"ttl ({self.ttl})"
            )
            raise ValueError(msg)

    @classmethod
    def from_settings(
        cls,
        settings: SwrSettings,
        proxy: Callable[[httpx.Request], httpx.Request] | None = None,
    ) -> SwrOptions:
        """Build options from loaded settings, optionally with a request transform."""
        return cls(
            ttl=settings.ttl,
            proxy=proxy or _identity,
            debug=settings.debug,
            store_expiration_ttl=settings.store_expiration_ttl,
            key_prefix=settings.key_prefix,
        )
