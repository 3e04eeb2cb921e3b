"""
WSGI middleware for webhook verification (Flask).
"""

from __future__ import annotations

import json
from io import BytesIO
from typing import Any, Callable, Iterable

from ..models import WebhookState
from ..verifier import WebhookVerifier

DECISION_HEADER = "X-Webhook-Decision"
ENVIRON_KEY = "swish_webhook.state"


def _extract_headers(environ: dict[str, Any]) -> dict[str, str]:
    """Extract HTTP headers from WSGI environ."""
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            # HTTP_X_SWISH_SIGNATURE -> x-swish-signature
            header_name = key[5:].replace("_", "-").lower()
            headers[header_name] = value
        elif key == "CONTENT_TYPE":
            headers["content-type"] = value
        elif key == "CONTENT_LENGTH":
            headers["content-length"] = value
    return headers


def _read_body(environ: dict[str, Any]) -> bytes:
    """Read the raw body and rewind wsgi.input for the downstream app."""
    content_length = environ.get("CONTENT_LENGTH")
    if not content_length:
        return b""
    try:
        length = int(content_length)
    except ValueError:
        return b""

    stream = environ.get("wsgi.input")
    if stream is None or length <= 0:
        return b""

    body_bytes = stream.read(length)
    environ["wsgi.input"] = BytesIO(body_bytes)
    return body_bytes


class SwishWebhookWSGIMiddleware:
    """
    WSGI middleware that verifies signed webhook deliveries.

    Attaches verification state to `environ["swish_webhook.state"]` with:
    - checked: bool - whether the request path was verified
    - result: VerificationResult | None - verification result if checked

    Args:
        app: WSGI application
        verifier: WebhookVerifier to run against each request
        paths: Request paths to verify. Default: every path.
        require_verified: If True (default), answer 401 with the failure
            reason. If False, attach state and let the request through.

    Example (Flask):
        >>> from flask import Flask
        >>> from swish_webhook_verifier.middleware.wsgi import SwishWebhookWSGIMiddleware
        >>>
        >>> app = Flask(__name__)
        >>> app.wsgi_app = SwishWebhookWSGIMiddleware(
        ...     app.wsgi_app, verifier=verifier, paths=["/webhook/swish"]
        ... )
    """

    def __init__(
        self,
        app: Callable[..., Iterable[bytes]],
        verifier: WebhookVerifier,
        paths: Iterable[str] | None = None,
        require_verified: bool = True,
    ):
        self.app = app
        self.verifier = verifier
        self.paths = frozenset(paths) if paths is not None else None
        self.require_verified = require_verified

    def __call__(
        self,
        environ: dict[str, Any],
        start_response: Callable[..., Any],
    ) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "/")
        if self.paths is not None and path not in self.paths:
            environ[ENVIRON_KEY] = WebhookState(checked=False, result=None)
            return self.app(environ, start_response)

        body = _read_body(environ)
        result = self.verifier.verify_sync(body, _extract_headers(environ))

        environ[ENVIRON_KEY] = WebhookState(checked=True, result=result)

        if self.require_verified and not result.verified:
            return self._error_response(
                start_response,
                result.reason.value if result.reason else None,
            )

        def custom_start_response(
            status: str,
            response_headers: list[tuple[str, str]],
            exc_info: Any = None,
        ) -> Any:
            decision = "allow" if result.verified else "observe"
            response_headers.append((DECISION_HEADER, decision))
            return start_response(status, response_headers, exc_info)

        return self.app(environ, custom_start_response)

    def _error_response(
        self,
        start_response: Callable[..., Any],
        reason: str | None,
    ) -> Iterable[bytes]:
        """Return 401 error response."""
        body = json.dumps({"reason": reason}).encode("utf-8")
        start_response(
            "401 Unauthorized",
            [
                ("Content-Type", "application/json"),
                ("Content-Length", str(len(body))),
                (DECISION_HEADER, "deny"),
            ],
        )
        return [body]
