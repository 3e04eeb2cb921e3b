"""
ASGI middleware for webhook verification (FastAPI/Starlette).
"""

from typing import Any, Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..models import WebhookState
from ..verifier import WebhookVerifier

DECISION_HEADER = "X-Webhook-Decision"


class SwishWebhookASGIMiddleware(BaseHTTPMiddleware):
    """
    ASGI middleware that verifies signed webhook deliveries.

    Attaches verification state to `request.state.swish_webhook` with:
    - checked: bool - whether the request path was verified
    - result: VerificationResult | None - verification result if checked

    Args:
        app: ASGI application
        verifier: WebhookVerifier to run against each request
        paths: Request paths to verify. Default: every path.
        require_verified: If True (default), answer 401 with the failure
            reason. If False, attach state and let the request through.

    Example (FastAPI):
        >>> from fastapi import FastAPI, Request
        >>> from swish_webhook_verifier import SwishWebhookASGIMiddleware
        >>>
        >>> app = FastAPI()
        >>> app.add_middleware(
        ...     SwishWebhookASGIMiddleware,
        ...     verifier=verifier,
        ...     paths=["/webhook/swish"],
        ... )
    """

    def __init__(
        self,
        app: Any,
        verifier: WebhookVerifier,
        paths: Iterable[str] | None = None,
        require_verified: bool = True,
    ):
        super().__init__(app)
        self.verifier = verifier
        self.paths = frozenset(paths) if paths is not None else None
        self.require_verified = require_verified

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        if self.paths is not None and request.url.path not in self.paths:
            request.state.swish_webhook = WebhookState(checked=False, result=None)
            return await call_next(request)

        # Raw bytes; re-encoding would invalidate the signature
        body = await request.body()
        result = await self.verifier.verify(body, request.headers.items())

        request.state.swish_webhook = WebhookState(checked=True, result=result)

        if self.require_verified and not result.verified:
            return JSONResponse(
                status_code=401,
                content={"reason": result.reason.value if result.reason else None},
                headers={DECISION_HEADER: "deny"},
            )

        response = await call_next(request)
        response.headers[DECISION_HEADER] = "allow" if result.verified else "observe"
        return response
