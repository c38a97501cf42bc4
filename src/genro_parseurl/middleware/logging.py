# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Logging Middleware - HTTP request/response access logging.

Logs incoming requests and outgoing responses with timing information.
The path and query come from the memoized URL parse, so running after
ParseURLMiddleware costs no extra parsing.

Log format:
    Request:  "<- GET /api/users?page=2 from 192.168.1.1"
    Response: "-> GET /api/users?page=2 200 (12.5ms)"
    Error:    "-> GET /api/users?page=2 ERROR: ... (12.5ms)"

Config:
    logger_name (str): Logger name. Default: "genro_parseurl.access".
    level (str): Log level (DEBUG, INFO, WARNING, ERROR). Default: "INFO".
    include_query (bool): Include query string in request log. Default: True.

Example:
    Enable in config.yaml::

        middleware:
          logging: on

        logging_middleware:
          logger_name: "myapp.access"
          level: "DEBUG"
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, MutableMapping

from . import BaseMiddleware
from ..exceptions import MalformedURLError
from ..request import ScopeRequest

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send


class LoggingMiddleware(BaseMiddleware):
    """Access logging middleware for HTTP requests.

    Attributes:
        logger: Python Logger instance for access logs.
        level: Numeric log level (from logging module).
        include_query: Whether to include query string in request path.

    Class Attributes:
        middleware_name: "logging" - identifier for config.
        middleware_order: 200 - runs after URL parsing.
        middleware_default: False - disabled by default.
    """

    middleware_name = "logging"
    middleware_order = 200
    middleware_default = False

    __slots__ = ("logger", "level", "include_query")

    def __init__(
        self,
        app: ASGIApp,
        logger_name: str = "genro_parseurl.access",
        level: str = "INFO",
        include_query: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(app, **kwargs)
        self.logger = logging.getLogger(logger_name)
        self.level = getattr(logging, level.upper(), logging.INFO)
        self.include_query = include_query

    def _request_target(self, scope: Scope) -> str:
        """Path (and search) from the memoized parse, raw URL if unparsable."""
        request = ScopeRequest(scope)
        try:
            parsed = request.parsed_url
        except MalformedURLError:
            return str(request.url)
        if parsed is None:
            return "/"
        if self.include_query:
            return parsed.pathname + parsed.search
        return parsed.pathname

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request_info = f"{scope.get('method', '?')} {self._request_target(scope)}"

        client = scope.get("client")
        client_ip = client[0] if client else "unknown"

        self.logger.log(self.level, f"<- {request_info} from {client_ip}")

        status_code: int = 0

        async def send_with_logging(message: MutableMapping[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, send_with_logging)
        except Exception as e:
            duration = (time.perf_counter() - start_time) * 1000
            self.logger.error(f"-> {request_info} ERROR: {e} ({duration:.1f}ms)")
            raise

        duration = (time.perf_counter() - start_time) * 1000
        self.logger.log(self.level, f"-> {request_info} {status_code} ({duration:.1f}ms)")
