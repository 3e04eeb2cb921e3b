"""
Exception types used inside the verification pipeline.

None of these escape ``WebhookVerifier.verify``; they are mapped to a
``FailureReason`` there. ``ConfigurationError`` is the exception raised at
construction time for invalid settings.
"""


class ConfigurationError(ValueError):
    """Invalid verifier or store configuration."""


class WebhookVerificationError(Exception):
    """Base class for errors raised by pipeline stages."""


class SignatureDecodeError(WebhookVerificationError):
    """Signature header is neither hex nor base64."""


class InvalidTimestampError(WebhookVerificationError):
    """Timestamp header could not be parsed by any supported format."""


class StoreUnavailableError(WebhookVerificationError):
    """The nonce store could not be reached or timed out."""
