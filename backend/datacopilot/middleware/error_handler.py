"""
Unified error handling middleware for DataCopilot.

Catches unhandled exceptions and returns a JSON body shaped like every
other API error (``{"error", "kind"}``) instead of a raw 500 page.
Internal details are logged, never returned.

Implemented as pure ASGI middleware (not BaseHTTPMiddleware) to avoid
the Starlette issue with stacked BaseHTTPMiddleware corrupting response
bodies.
"""

import json
import logging
import traceback

from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("datacopilot.middleware.error_handler")


class ErrorHandlerMiddleware:
    """Catches unhandled exceptions and returns structured JSON error responses."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            path = scope.get("path", "unknown")
            method = scope.get("method", "unknown")
            logger.error("Unhandled exception on %s %s: %s", method, path, exc)
            logger.debug(traceback.format_exc())
            if response_started:
                raise

            body = json.dumps({
                "error": "An unexpected error occurred. Please try again.",
                "kind": "internal",
            }).encode("utf-8")

            await send({
                "type": "http.response.start",
                "status": 500,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            })
            await send({
                "type": "http.response.body",
                "body": body,
            })
