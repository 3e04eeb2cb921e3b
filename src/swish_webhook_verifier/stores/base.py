"""
Nonce store contract.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Protocol, runtime_checkable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@runtime_checkable
class NonceStore(Protocol):
    """
    Registry of consumed nonces.

    ``reserve`` is the only replay check: it returns True the first time a
    nonce is reserved before its expiry and False for every later attempt
    while the reservation is live. Reservation is atomic, so callers must
    not check for existence separately.

    Implementations raise StoreUnavailableError when the backing store
    cannot be reached.
    """

    async def reserve(self, nonce: str, expires_at: datetime, now: datetime | None = None) -> bool:
        """``now`` is the caller's reference time; default is the store's clock."""
        ...

    def reserve_sync(self, nonce: str, expires_at: datetime, now: datetime | None = None) -> bool:
        ...
