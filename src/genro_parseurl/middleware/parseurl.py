# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""URL parsing middleware - memoizes the request URL parse on the scope.

Parses the current and original request URL once, early in the chain, so
inner middleware and handlers calling ``ScopeRequest(scope).parsed_url`` (or
``parse_request_url``) get the cached result.

Config:
    reject_malformed (bool): Answer 400 when the request target cannot be
        parsed; WebSocket handshakes are closed with code 1008 instead.
        When False, the request passes through unparsed and the failure is
        logged as a warning. Default: True.
    parse_original (bool): Also memoize the original URL. Default: True.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from . import BaseMiddleware
from ..exceptions import HTTPException, MalformedURLError
from ..memo import parse_original_request_url, parse_request_url
from ..request import ScopeRequest

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("genro_parseurl.middleware")


class ParseURLMiddleware(BaseMiddleware):
    """Eager URL parsing for HTTP and WebSocket scopes.

    Class Attributes:
        middleware_name: "parseurl" - identifier for config.
        middleware_order: 150 - after errors, before logging.
        middleware_default: True - enabled by default.
    """

    middleware_name = "parseurl"
    middleware_order = 150
    middleware_default = True

    __slots__ = ("reject_malformed", "parse_original")

    def __init__(
        self,
        app: ASGIApp,
        reject_malformed: bool = True,
        parse_original: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(app, **kwargs)
        self.reject_malformed = reject_malformed
        self.parse_original = parse_original

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request = ScopeRequest(scope)
        try:
            parse_request_url(request)
            if self.parse_original:
                parse_original_request_url(request)
        except MalformedURLError as e:
            if self.reject_malformed:
                if scope["type"] == "websocket":
                    logger.warning(f"Closing websocket with unparsable URL {e.url!r}: {e.detail}")
                    await send({"type": "websocket.close", "code": 1008})
                    return
                raise HTTPException(400, detail="Malformed request URL") from e
            logger.warning(f"Unparsable request URL {e.url!r}: {e.detail}")

        await self.app(scope, receive, send)
