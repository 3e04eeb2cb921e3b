"""
Redis-backed nonce store for multi-instance deployments.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

import redis
import redis.asyncio as aioredis

from ..errors import ConfigurationError, StoreUnavailableError
from .base import Clock, utc_now

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "swish:nonce:"
DEFAULT_MAX_TTL = timedelta(days=7)


class RedisNonceStore:
    """
    Nonce store using Redis ``SET key value NX PX ttl``.

    Keys are ``<key_prefix><nonce>``; the value is the ISO-8601 reservation
    instant. The TTL is the time left until ``expires_at``, clamped to
    ``max_ttl`` so a misconfigured window cannot grow the keyspace without
    bound.

    Args:
        client: Synchronous client, used by ``reserve_sync``
        async_client: Asyncio client, used by ``reserve``
        key_prefix: Namespace for nonce keys. Default: "swish:nonce:"
        max_ttl: Upper bound on key expiry. Default: 7 days
        timeout: Seconds to wait for an async reservation before giving up
        clock: Returns the current aware UTC time (default: wall clock)

    Example:
        >>> store = RedisNonceStore.from_url("redis://localhost:6379/0")
        >>> verifier = WebhookVerifier(config, store)
    """

    def __init__(
        self,
        client: redis.Redis | None = None,
        async_client: aioredis.Redis | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        max_ttl: timedelta = DEFAULT_MAX_TTL,
        timeout: float | None = None,
        clock: Clock | None = None,
    ):
        if client is None and async_client is None:
            raise ConfigurationError("RedisNonceStore needs a client or an async_client")
        if max_ttl <= timedelta(0):
            raise ConfigurationError("max_ttl must be positive")

        self.client = client
        self.async_client = async_client
        self.key_prefix = key_prefix if key_prefix and key_prefix.strip() else DEFAULT_KEY_PREFIX
        self.max_ttl = max_ttl
        self.timeout = timeout
        self._clock = clock or utc_now

    @classmethod
    def from_url(
        cls,
        url: str,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        max_ttl: timedelta = DEFAULT_MAX_TTL,
        timeout: float | None = 2.0,
    ) -> RedisNonceStore:
        """Create a store with both a sync and an asyncio client for ``url``."""
        return cls(
            client=redis.Redis.from_url(
                url,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            ),
            async_client=aioredis.Redis.from_url(
                url,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            ),
            key_prefix=key_prefix,
            max_ttl=max_ttl,
            timeout=timeout,
        )

    def key(self, nonce: str) -> str:
        return f"{self.key_prefix}{nonce}"

    def ttl_ms(self, expires_at: datetime, now: datetime | None = None) -> int:
        """Milliseconds until ``expires_at``, clamped to [1, max_ttl]."""
        now = now or self._clock()
        ttl = min(expires_at - now, self.max_ttl)
        return max(int(ttl.total_seconds() * 1000), 1)

    def _command(self, nonce: str, expires_at: datetime, now: datetime | None) -> tuple[str, str, int]:
        if not nonce or not nonce.strip():
            raise ValueError("Nonce cannot be empty")
        now = now or self._clock()
        return self.key(nonce), now.isoformat(), self.ttl_ms(expires_at, now)

    def reserve_sync(self, nonce: str, expires_at: datetime, now: datetime | None = None) -> bool:
        if self.client is None:
            raise ConfigurationError("RedisNonceStore has no synchronous client")

        key, value, ttl_ms = self._command(nonce, expires_at, now)
        try:
            added = self.client.set(key, value, nx=True, px=ttl_ms)
        except redis.RedisError as exc:
            logger.warning("Redis unavailable for nonce reservation", exc_info=True)
            raise StoreUnavailableError("Nonce store unavailable") from exc

        return bool(added)

    async def reserve(self, nonce: str, expires_at: datetime, now: datetime | None = None) -> bool:
        if self.async_client is None:
            raise ConfigurationError("RedisNonceStore has no async client")

        key, value, ttl_ms = self._command(nonce, expires_at, now)
        try:
            pending = self.async_client.set(key, value, nx=True, px=ttl_ms)
            if self.timeout is not None:
                added = await asyncio.wait_for(pending, self.timeout)
            else:
                added = await pending
        except (redis.RedisError, asyncio.TimeoutError) as exc:
            logger.warning("Redis unavailable for nonce reservation", exc_info=True)
            raise StoreUnavailableError("Nonce store unavailable") from exc

        return bool(added)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()

    async def aclose(self) -> None:
        if self.async_client is not None:
            await self.async_client.aclose()
