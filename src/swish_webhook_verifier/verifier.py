"""
Webhook verifier: headers, timestamp, signature, then nonce reservation.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from .config import NoncePolicy, VerifierConfig
from .errors import InvalidTimestampError, SignatureDecodeError, StoreUnavailableError
from .headers import HeaderInput, extract_message
from .models import FailureReason, InboundMessage, VerificationResult
from .signing import build_canonical_message, signature_matches
from .stores.base import NonceStore, utc_now
from .timestamps import is_within_window, parse_timestamp

logger = logging.getLogger(__name__)


class WebhookVerifier:
    """
    Verifies signed webhook deliveries.

    Each call runs the stages in order and stops at the first failure:
    required headers, timestamp format and window, HMAC signature, and
    finally nonce reservation. The nonce is only reserved once the
    signature checks out, so unauthenticated requests never reach the store.

    The verifier holds no per-request state and is safe to share between
    threads and tasks. It does not own the nonce store.

    Args:
        config: Secret, time window and nonce policy
        nonce_store: Store used to detect replays
        clock: Returns the current aware UTC time (default: wall clock)

    Example:
        >>> verifier = WebhookVerifier(VerifierConfig(secret="s3cret"), InMemoryNonceStore())
        >>> result = await verifier.verify(body, request.headers)
        >>> if not result.verified:
        ...     return JSONResponse({"reason": result.reason.value}, status_code=401)
    """

    def __init__(
        self,
        config: VerifierConfig,
        nonce_store: NonceStore,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config
        self.nonce_store = nonce_store
        self._clock = clock or utc_now

    def _now(self, now: datetime | None) -> datetime:
        if now is None:
            return self._clock()
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now

    def _check_message(self, message: InboundMessage, now: datetime) -> VerificationResult | None:
        """
        Run every check that needs no I/O.

        Returns None if the message may proceed to nonce reservation, or a
        failed VerificationResult.
        """
        names = self.config.header_names

        if message.timestamp is None:
            return VerificationResult.failure(FailureReason.MISSING_HEADER, names.timestamp)
        if message.signature is None:
            return VerificationResult.failure(FailureReason.MISSING_HEADER, names.signature)
        if message.nonce is None and self.config.nonce_policy is NoncePolicy.REQUIRED:
            return VerificationResult.failure(FailureReason.MISSING_HEADER, names.nonce)

        try:
            declared = parse_timestamp(message.timestamp)
        except InvalidTimestampError:
            return VerificationResult.failure(FailureReason.INVALID_TIMESTAMP_FORMAT)

        if not is_within_window(
            declared,
            now,
            self.config.allowed_clock_skew,
            self.config.max_message_age,
        ):
            return VerificationResult.failure(FailureReason.TIMESTAMP_OUT_OF_WINDOW)

        canonical = build_canonical_message(
            message.timestamp,
            self._signed_nonce(message),
            message.body,
        )
        try:
            matches = signature_matches(self.config.secret_bytes, canonical, message.signature)
        except SignatureDecodeError:
            return VerificationResult.failure(FailureReason.SIGNATURE_MISMATCH, "undecodable signature")

        if not matches:
            return VerificationResult.failure(FailureReason.SIGNATURE_MISMATCH)

        return None

    def _signed_nonce(self, message: InboundMessage) -> str:
        if self.config.nonce_policy is NoncePolicy.DISABLED:
            return ""
        return message.nonce or ""

    def _nonce_to_reserve(self, message: InboundMessage) -> str | None:
        if self.config.nonce_policy is NoncePolicy.DISABLED:
            return None
        return message.nonce

    def _log_result(self, result: VerificationResult, message: InboundMessage) -> VerificationResult:
        if not result.verified:
            logger.warning(
                "Webhook verification failed: reason=%s nonce=%r",
                result.reason.value if result.reason else None,
                message.nonce,
            )
        return result

    async def verify(
        self,
        body: bytes | str,
        headers: HeaderInput,
        now: datetime | None = None,
    ) -> VerificationResult:
        """
        Verify a webhook delivery asynchronously.

        Args:
            body: Raw request body, exactly as received
            headers: Request headers (case-insensitive, aliases allowed)
            now: Reference time (default: the verifier's clock)

        Returns:
            VerificationResult; failures carry a FailureReason

        Raises:
            asyncio.CancelledError: If the caller cancels during nonce
                reservation. Cancellation never yields a success.
        """
        message = extract_message(body, headers, self.config.header_names)
        current = self._now(now)

        local_error = self._check_message(message, current)
        if local_error is not None:
            return self._log_result(local_error, message)

        nonce = self._nonce_to_reserve(message)
        if nonce is None:
            return VerificationResult.success()

        try:
            reserved = await self.nonce_store.reserve(
                nonce, current + self.config.effective_nonce_ttl, now=current
            )
        except StoreUnavailableError:
            return self._log_result(VerificationResult.failure(FailureReason.STORE_UNAVAILABLE), message)

        return self._reservation_result(reserved, message)

    def verify_sync(
        self,
        body: bytes | str,
        headers: HeaderInput,
        now: datetime | None = None,
    ) -> VerificationResult:
        """
        Verify a webhook delivery synchronously.

        Args:
            body: Raw request body, exactly as received
            headers: Request headers (case-insensitive, aliases allowed)
            now: Reference time (default: the verifier's clock)

        Returns:
            VerificationResult; failures carry a FailureReason
        """
        message = extract_message(body, headers, self.config.header_names)
        current = self._now(now)

        local_error = self._check_message(message, current)
        if local_error is not None:
            return self._log_result(local_error, message)

        nonce = self._nonce_to_reserve(message)
        if nonce is None:
            return VerificationResult.success()

        try:
            reserved = self.nonce_store.reserve_sync(
                nonce, current + self.config.effective_nonce_ttl, now=current
            )
        except StoreUnavailableError:
            return self._log_result(VerificationResult.failure(FailureReason.STORE_UNAVAILABLE), message)

        return self._reservation_result(reserved, message)

    def _reservation_result(self, reserved: bool, message: InboundMessage) -> VerificationResult:
        if not reserved:
            return self._log_result(VerificationResult.failure(FailureReason.REPLAY_DETECTED), message)
        logger.debug("Webhook accepted: nonce=%r", message.nonce)
        return VerificationResult.success()
