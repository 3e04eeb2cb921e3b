"""
Process-local nonce store.
"""

from __future__ import annotations

import threading
from datetime import datetime

from ..models import NonceRecord
from .base import Clock, utc_now


class InMemoryNonceStore:
    """
    Nonce store backed by a lock-protected dict.

    Expired entries are swept on every access, so no background task is
    needed. State is per process: use it for single-instance deployments,
    local development and tests.

    Args:
        clock: Returns the current aware UTC time (default: wall clock)
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or utc_now
        self._records: dict[str, NonceRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._sweep(self._clock())
            return len(self._records)

    def _sweep(self, now: datetime) -> None:
        expired = [key for key, record in self._records.items() if record.is_expired(now)]
        for key in expired:
            del self._records[key]

    def reserve_sync(self, nonce: str, expires_at: datetime, now: datetime | None = None) -> bool:
        """
        Reserve ``nonce`` until ``expires_at``; False if already reserved.

        ``now`` is the caller's reference time and drives the sweep; the
        store's clock is used when it is omitted.
        """
        with self._lock:
            now = now or self._clock()
            self._sweep(now)

            # A reservation that is already over can never be held
            if expires_at <= now:
                return False

            if nonce in self._records:
                return False

            self._records[nonce] = NonceRecord(nonce=nonce, expires_at=expires_at)
            return True

    async def reserve(self, nonce: str, expires_at: datetime, now: datetime | None = None) -> bool:
        return self.reserve_sync(nonce, expires_at, now)
