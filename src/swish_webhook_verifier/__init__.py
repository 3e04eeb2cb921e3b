"""
Swish Webhook Verifier SDK for Python

Authenticate inbound payment webhooks: HMAC-SHA256 signature, timestamp
window and single-use nonce.
"""

from .config import HeaderNames, NoncePolicy, VerifierConfig
from .errors import ConfigurationError
from .headers import extract_message, has_webhook_headers, normalize_headers
from .models import FailureReason, InboundMessage, NonceRecord, VerificationResult, WebhookState
from .signing import build_canonical_message, compute_signature, sign_headers
from .stores import InMemoryNonceStore, NonceStore, RedisNonceStore, nonce_store_from_env
from .verifier import WebhookVerifier

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "FailureReason",
    "HeaderNames",
    "InboundMessage",
    "InMemoryNonceStore",
    "NonceRecord",
    "NoncePolicy",
    "NonceStore",
    "RedisNonceStore",
    "VerificationResult",
    "VerifierConfig",
    "WebhookState",
    "WebhookVerifier",
    "build_canonical_message",
    "compute_signature",
    "extract_message",
    "has_webhook_headers",
    "nonce_store_from_env",
    "normalize_headers",
    "sign_headers",
]

# Middleware imports - optional, require framework dependencies
try:
    from .middleware.asgi import SwishWebhookASGIMiddleware
    __all__.append("SwishWebhookASGIMiddleware")
except ImportError:
    pass

from .middleware.wsgi import SwishWebhookWSGIMiddleware
__all__.append("SwishWebhookWSGIMiddleware")
