"""
Request logging middleware.

Pure ASGI so the request ID is set before CORS, body parsing and static
files run, and so a single completion line can report which layer answered.
"""

import logging
import time
from typing import Optional

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .logging_config import clear_request_id, get_logger, log_event, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Layers mark scope["state"]["handled_by"]; unmarked requests reached routing
HANDLED_BY_ROUTER = "router"


def mark_handled_by(scope: Scope, layer: str) -> None:
    """Record which layer produced the response for the completion log."""
    scope.setdefault("state", {})["handled_by"] = layer


class RequestLoggingMiddleware:
    """
    Assign a request ID and log one line per completed request.

    An incoming ``X-Request-ID`` is reused, otherwise a UUID is generated.
    The ID is echoed on the response and stamped on every log record
    emitted while the request is in flight.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        request_id = set_request_id(headers.get(REQUEST_ID_HEADER) or None)
        start_time = time.perf_counter()
        status_code: Optional[int] = None
        response_bytes = 0

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code, response_bytes
            if message["type"] == "http.response.start":
                status_code = message["status"]
                message.setdefault("headers", [])
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            elif message["type"] == "http.response.body":
                response_bytes += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                f"Request failed: {scope['method']} {scope['path']}",
                method=scope["method"],
                path=scope["path"],
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=repr(exc),
            )
            raise
        else:
            handled_by = scope.get("state", {}).get("handled_by", HANDLED_BY_ROUTER)
            log_event(
                logger,
                logging.INFO,
                f"{scope['method']} {scope['path']} [{status_code}]",
                method=scope["method"],
                path=scope["path"],
                status_code=status_code,
                handled_by=handled_by,
                response_bytes=response_bytes,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                origin=headers.get("origin"),
            )
        finally:
            clear_request_id()
