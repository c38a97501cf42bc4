# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Error handling middleware for ASGI applications.

Catches exceptions raised during request processing and converts them
to HTTP responses.

Exception handling:
    - HTTPException: Returns status code with detail message
      (e.g. 400 raised by ParseURLMiddleware for a malformed URL)
    - Exception: Returns 500 Internal Server Error

Config:
    debug (bool): If True, include traceback in 500 responses. Default: False.

Note:
    Enabled by default (middleware_default=True) and runs first in the
    chain (middleware_order=100) to catch all errors.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING, Any

from . import BaseMiddleware
from ..exceptions import HTTPException

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("genro_parseurl.errors")


class ErrorMiddleware(BaseMiddleware):
    """Error handling middleware for HTTP requests.

    Non-HTTP requests pass through unchanged.

    Attributes:
        debug: If True, include stack traces in 500 error responses.
    """

    middleware_name = "errors"
    middleware_order = 100
    middleware_default = True

    __slots__ = ("debug",)

    def __init__(self, app: ASGIApp, debug: bool = False, **kwargs: Any) -> None:
        super().__init__(app, **kwargs)
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except HTTPException as e:
            await self._send_http_error(send, e)
        except Exception as e:
            logger.exception(f"Unhandled error for {scope.get('path')!r}")
            await self._send_server_error(send, e)

    async def _send_http_error(self, send: Send, exc: HTTPException) -> None:
        """Send plain-text HTTP error response from HTTPException."""
        body_bytes = (exc.detail or "").encode("utf-8")

        headers: list[tuple[bytes, bytes]] = [
            (b"content-type", b"text/plain; charset=utf-8"),
            (b"content-length", str(len(body_bytes)).encode()),
        ]
        if exc.headers:
            headers.extend((k.encode(), v.encode()) for k, v in exc.headers)

        await send({"type": "http.response.start", "status": exc.status_code, "headers": headers})
        await send({"type": "http.response.body", "body": body_bytes})

    async def _send_server_error(self, send: Send, error: Exception) -> None:
        """Send 500 Internal Server Error response."""
        if self.debug:
            body = f"Internal Server Error\n\n{traceback.format_exc()}"
        else:
            body = "Internal Server Error"

        body_bytes = body.encode("utf-8")

        await send(
            {
                "type": "http.response.start",
                "status": 500,
                "headers": [
                    (b"content-type", b"text/plain; charset=utf-8"),
                    (b"content-length", str(len(body_bytes)).encode()),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body_bytes})
