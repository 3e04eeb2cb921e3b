"""
Verifier configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Mapping

from .errors import ConfigurationError

DEFAULT_CLOCK_SKEW = timedelta(minutes=5)
DEFAULT_MAX_MESSAGE_AGE = timedelta(minutes=10)


class NoncePolicy(str, Enum):
    """Whether deliveries must carry a nonce header."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    DISABLED = "disabled"


@dataclass(frozen=True)
class HeaderNames:
    """
    Canonical header names plus the legacy aliases folded into them.

    Lookups are case-insensitive. When a canonical header and one of its
    aliases are both present, the canonical header wins.
    """
    timestamp: str = "X-Swish-Timestamp"
    signature: str = "X-Swish-Signature"
    nonce: str = "X-Swish-Nonce"
    timestamp_aliases: tuple[str, ...] = ("X-Timestamp",)
    signature_aliases: tuple[str, ...] = ("X-Signature",)
    nonce_aliases: tuple[str, ...] = ("X-Nonce",)

    def lookup_order(self, canonical: str) -> tuple[str, ...]:
        """Lowercased names to try, canonical first."""
        aliases = {
            self.timestamp: self.timestamp_aliases,
            self.signature: self.signature_aliases,
            self.nonce: self.nonce_aliases,
        }[canonical]
        return tuple(name.lower() for name in (canonical, *aliases))


def _seconds(value: str, name: str) -> timedelta:
    try:
        return timedelta(seconds=float(value))
    except (ValueError, OverflowError):
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}") from None


@dataclass(frozen=True)
class VerifierConfig:
    """
    Settings for a WebhookVerifier.

    Args:
        secret: Shared HMAC secret (str is encoded as UTF-8). Never logged.
        allowed_clock_skew: Symmetric tolerance between sender and receiver clocks.
        max_message_age: Optional bound on how old a message may be,
            independent of the skew. None disables it.
        nonce_policy: Whether a nonce header is required, optional or ignored.
        nonce_ttl: How long a reserved nonce is remembered. Defaults to the
            full freshness window, so a nonce outlives every timestamp that
            could still pass the window check.
        header_names: Header names and aliases to read.

    Raises:
        ConfigurationError: On an empty secret or negative durations.
    """
    secret: bytes | str = field(repr=False)
    allowed_clock_skew: timedelta = DEFAULT_CLOCK_SKEW
    max_message_age: timedelta | None = DEFAULT_MAX_MESSAGE_AGE
    nonce_policy: NoncePolicy = NoncePolicy.REQUIRED
    nonce_ttl: timedelta | None = None
    header_names: HeaderNames = field(default_factory=HeaderNames)

    def __post_init__(self) -> None:
        if isinstance(self.secret, str):
            object.__setattr__(self, "secret", self.secret.encode("utf-8"))
        if not self.secret:
            raise ConfigurationError("Webhook secret must not be empty")
        if self.allowed_clock_skew < timedelta(0):
            raise ConfigurationError("allowed_clock_skew must not be negative")
        if self.max_message_age is not None and self.max_message_age < timedelta(0):
            raise ConfigurationError("max_message_age must not be negative")
        if self.nonce_ttl is not None and self.nonce_ttl <= timedelta(0):
            raise ConfigurationError("nonce_ttl must be positive")
        try:
            object.__setattr__(self, "nonce_policy", NoncePolicy(self.nonce_policy))
        except ValueError:
            raise ConfigurationError(f"Unknown nonce policy: {self.nonce_policy!r}") from None

    @property
    def secret_bytes(self) -> bytes:
        return self.secret  # type: ignore[return-value]

    @property
    def effective_nonce_ttl(self) -> timedelta:
        if self.nonce_ttl is not None:
            return self.nonce_ttl
        past_bound = self.max_message_age if self.max_message_age is not None else self.allowed_clock_skew
        ttl = self.allowed_clock_skew + past_bound
        # zero skew and zero age still need a live reservation
        return ttl if ttl > timedelta(0) else timedelta(seconds=1)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> VerifierConfig:
        """
        Build a config from environment variables.

        Reads SWISH_WEBHOOK_SECRET (required), SWISH_WEBHOOK_CLOCK_SKEW_SECONDS,
        SWISH_WEBHOOK_MAX_AGE_SECONDS (empty disables), SWISH_WEBHOOK_NONCE_POLICY
        and SWISH_WEBHOOK_NONCE_TTL_SECONDS.
        """
        env = os.environ if environ is None else environ

        secret = env.get("SWISH_WEBHOOK_SECRET", "")
        if not secret.strip():
            raise ConfigurationError("Missing SWISH_WEBHOOK_SECRET")

        skew = _seconds(
            env.get("SWISH_WEBHOOK_CLOCK_SKEW_SECONDS", "300"),
            "SWISH_WEBHOOK_CLOCK_SKEW_SECONDS",
        )

        max_age: timedelta | None = DEFAULT_MAX_MESSAGE_AGE
        raw_max_age = env.get("SWISH_WEBHOOK_MAX_AGE_SECONDS")
        if raw_max_age is not None:
            max_age = _seconds(raw_max_age, "SWISH_WEBHOOK_MAX_AGE_SECONDS") if raw_max_age.strip() else None

        raw_policy = env.get("SWISH_WEBHOOK_NONCE_POLICY", NoncePolicy.REQUIRED.value)
        try:
            policy = NoncePolicy(raw_policy.strip().lower())
        except ValueError:
            raise ConfigurationError(f"Unknown SWISH_WEBHOOK_NONCE_POLICY: {raw_policy!r}") from None

        nonce_ttl = None
        raw_ttl = env.get("SWISH_WEBHOOK_NONCE_TTL_SECONDS")
        if raw_ttl:
            nonce_ttl = _seconds(raw_ttl, "SWISH_WEBHOOK_NONCE_TTL_SECONDS")

        return cls(
            secret=secret,
            allowed_clock_skew=skew,
            max_message_age=max_age,
            nonce_policy=policy,
            nonce_ttl=nonce_ttl,
        )
