"""
Request logging middleware for DataCopilot.

One log line per request: method, path, status, duration, whether the
route talks to the language model, and for failures the error ``kind``
read from the ``{"error", "kind"}`` response body. Failures log at
WARNING so upstream and parse problems stand out from normal traffic.
Every response also carries an ``x-response-time-ms`` header.

Implemented as pure ASGI middleware (not BaseHTTPMiddleware) to avoid
the Starlette issue with stacked BaseHTTPMiddleware corrupting response
bodies.
"""

import json
import logging
import time
from typing import Iterable, List, Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("datacopilot.middleware.request_logger")

# Error bodies are small JSON objects; anything larger is not inspected
MAX_ERROR_BODY_BYTES = 4096


def error_kind(body: bytes) -> Optional[str]:
    """The ``kind`` field of an error body, if it has one."""
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    if isinstance(payload, dict) and isinstance(payload.get("kind"), str):
        return payload["kind"]
    return None


class RequestLoggerMiddleware:
    """Logs each request and tags model-backed routes and error kinds."""

    def __init__(self, app: ASGIApp, model_paths: Iterable[str] = ()):
        self.app = app
        self.model_paths = frozenset(model_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        path = scope.get("path", "?")
        status_code = 0
        error_body: List[bytes] = []
        error_size = 0

        async def send_wrapper(message: Message):
            nonlocal status_code, error_size
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                duration_ms = round((time.time() - start_time) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append([b"x-response-time-ms", str(duration_ms).encode()])
                message = {**message, "headers": headers}
            elif message["type"] == "http.response.body":
                chunk = message.get("body", b"")
                if status_code >= 400 and error_size + len(chunk) <= MAX_ERROR_BODY_BYTES:
                    error_body.append(chunk)
                    error_size += len(chunk)
                if not message.get("more_body", False):
                    self._log(scope.get("method", "?"), path, status_code, start_time, b"".join(error_body))
            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _log(self, method: str, path: str, status_code: int, start_time: float, body: bytes) -> None:
        duration_ms = (time.time() - start_time) * 1000
        tags = []
        if path in self.model_paths:
            tags.append("model")
        if status_code >= 400:
            kind = error_kind(body)
            if kind:
                tags.append(f"kind={kind}")
        suffix = f" [{' '.join(tags)}]" if tags else ""
        level = logging.WARNING if status_code >= 400 else logging.INFO
        logger.log(level, "%s %s -> %s (%.2fms)%s", method, path, status_code, duration_ms, suffix)
