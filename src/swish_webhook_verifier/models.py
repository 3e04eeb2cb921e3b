"""
Data models for webhook verification.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class FailureReason(str, Enum):
    """Closed set of reasons a webhook can be rejected for."""

    MISSING_HEADER = "missing_header"
    INVALID_TIMESTAMP_FORMAT = "invalid_timestamp_format"
    TIMESTAMP_OUT_OF_WINDOW = "timestamp_out_of_window"
    SIGNATURE_MISMATCH = "signature_mismatch"
    REPLAY_DETECTED = "replay_detected"
    STORE_UNAVAILABLE = "store_unavailable"


_REASON_MESSAGES = {
    FailureReason.MISSING_HEADER: "Missing required header",
    FailureReason.INVALID_TIMESTAMP_FORMAT: "Timestamp header could not be parsed",
    FailureReason.TIMESTAMP_OUT_OF_WINDOW: "Timestamp outside the allowed window",
    FailureReason.SIGNATURE_MISMATCH: "Signature does not match",
    FailureReason.REPLAY_DETECTED: "Nonce has already been used",
    FailureReason.STORE_UNAVAILABLE: "Nonce store unavailable",
}


@dataclass(frozen=True)
class InboundMessage:
    """
    A webhook delivery after header normalization.

    Attributes:
        body: Raw request body, exactly as received
        timestamp: Literal timestamp header value, or None if absent
        signature: Literal signature header value, or None if absent
        nonce: Nonce header value, or None if absent
    """
    body: bytes
    timestamp: str | None
    signature: str | None
    nonce: str | None = None


@dataclass(frozen=True)
class NonceRecord:
    """
    A consumed nonce held by a nonce store until it expires.

    Attributes:
        nonce: The nonce value (uniqueness key)
        expires_at: Instant after which the nonce may be reserved again
    """
    nonce: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of verifying one webhook delivery.

    Attributes:
        verified: Whether the delivery passed every check
        reason: Why it was rejected, None on success
        detail: Extra non-sensitive context (e.g. which header was missing)
    """
    verified: bool
    reason: FailureReason | None = None
    detail: str | None = None

    @classmethod
    def success(cls) -> VerificationResult:
        return cls(verified=True)

    @classmethod
    def failure(cls, reason: FailureReason, detail: str | None = None) -> VerificationResult:
        return cls(verified=False, reason=reason, detail=detail)

    @property
    def error(self) -> str | None:
        """Human-readable failure message, safe to return to the sender."""
        if self.reason is None:
            return None
        message = _REASON_MESSAGES[self.reason]
        if self.detail:
            return f"{message}: {self.detail}"
        return message


@dataclass
class WebhookState:
    """
    Verification state attached to requests by the middleware.

    Attributes:
        checked: Whether the request path was subject to verification
        result: Verification result if checked
    """
    checked: bool
    result: VerificationResult | None = None
