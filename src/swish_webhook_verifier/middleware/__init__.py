"""
Webhook verification middleware for ASGI and WSGI frameworks.

Re-exports middleware classes for convenient imports:
    from swish_webhook_verifier.middleware import SwishWebhookASGIMiddleware
    from swish_webhook_verifier.middleware import SwishWebhookWSGIMiddleware
"""

__all__: list[str] = []

# ASGI middleware (FastAPI, Starlette)
try:
    from .asgi import SwishWebhookASGIMiddleware
    __all__.append("SwishWebhookASGIMiddleware")
except ImportError:
    pass

# WSGI middleware (Flask)
from .wsgi import SwishWebhookWSGIMiddleware
__all__.append("SwishWebhookWSGIMiddleware")
