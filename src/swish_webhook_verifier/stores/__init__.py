"""
Nonce store implementations.

    from swish_webhook_verifier.stores import InMemoryNonceStore, RedisNonceStore
"""

from __future__ import annotations

import logging
import os
from typing import Mapping

from .base import NonceStore
from .memory import InMemoryNonceStore
from .redis_store import DEFAULT_KEY_PREFIX, RedisNonceStore

logger = logging.getLogger(__name__)

__all__ = [
    "NonceStore",
    "InMemoryNonceStore",
    "RedisNonceStore",
    "nonce_store_from_env",
    "redis_url_from_connection_string",
]

# Checked in order; the first non-blank one wins
REDIS_ENV_VARS = ("SWISH_REDIS", "REDIS_URL", "SWISH_REDIS_CONN")


def redis_url_from_connection_string(value: str) -> str:
    """
    Accept either a redis URL or a ``host:port,option=value`` connection string.

    Examples:
        >>> redis_url_from_connection_string("localhost:6379,abortConnect=false")
        'redis://localhost:6379'
        >>> redis_url_from_connection_string("rediss://cache:6380/1")
        'rediss://cache:6380/1'
    """
    value = value.strip()
    if "://" in value:
        return value
    endpoint = value.split(",", 1)[0].strip()
    return f"redis://{endpoint}"


def nonce_store_from_env(
    environ: Mapping[str, str] | None = None,
    key_prefix: str = DEFAULT_KEY_PREFIX,
) -> NonceStore:
    """
    Construct a nonce store from environment variables.

    Returns a RedisNonceStore when SWISH_REDIS, REDIS_URL or SWISH_REDIS_CONN
    is set, otherwise an InMemoryNonceStore. A new store is built on every
    call; share the returned instance between verifiers yourself.
    """
    env = os.environ if environ is None else environ

    for name in REDIS_ENV_VARS:
        value = env.get(name, "")
        if value.strip():
            logger.info("Using Redis nonce store from %s", name)
            return RedisNonceStore.from_url(
                redis_url_from_connection_string(value),
                key_prefix=key_prefix,
            )

    logger.info("No Redis configured, using in-memory nonce store")
    return InMemoryNonceStore()
