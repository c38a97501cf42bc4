# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for middleware and middleware_chain."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from genro_parseurl.exceptions import HTTPException
from genro_parseurl.middleware import MIDDLEWARE_REGISTRY, middleware_chain
from genro_parseurl.middleware.errors import ErrorMiddleware
from genro_parseurl.middleware.logging import LoggingMiddleware
from genro_parseurl.middleware.parseurl import ParseURLMiddleware
from genro_parseurl.request import ScopeRequest


def make_scope(
    path: str = "/",
    query_string: bytes = b"",
    raw_path: bytes | None = None,
    scope_type: str = "http",
) -> dict[str, Any]:
    """Create a mock ASGI scope."""
    scope: dict[str, Any] = {
        "type": scope_type,
        "method": "GET",
        "path": path,
        "query_string": query_string,
        "headers": [],
        "client": ("127.0.0.1", 50000),
    }
    if raw_path is not None:
        scope["raw_path"] = raw_path
    return scope


class SendRecorder:
    """Collects ASGI messages sent by the app."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def status(self) -> int:
        return self.messages[0]["status"]

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages[1:])


async def ok_app(scope, receive, send):
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"ok"})


class TestRegistry:
    """Test middleware auto-registration."""

    def test_registered_names(self):
        """Built-in middleware are registered by name."""
        assert MIDDLEWARE_REGISTRY["errors"] is ErrorMiddleware
        assert MIDDLEWARE_REGISTRY["parseurl"] is ParseURLMiddleware
        assert MIDDLEWARE_REGISTRY["logging"] is LoggingMiddleware


class TestMiddlewareChain:
    """Test middleware_chain ordering and options."""

    def test_defaults(self):
        """errors and parseurl are on by default, in order."""
        app = middleware_chain({}, ok_app)
        assert isinstance(app, ErrorMiddleware)
        assert isinstance(app.app, ParseURLMiddleware)
        assert app.app.app is ok_app

    def test_enable_logging(self):
        """logging runs after parseurl."""
        app = middleware_chain({"logging": "on"}, ok_app)
        assert isinstance(app, ErrorMiddleware)
        assert isinstance(app.app, ParseURLMiddleware)
        assert isinstance(app.app.app, LoggingMiddleware)
        assert app.app.app.app is ok_app

    def test_disable_default(self):
        """Defaults can be switched off."""
        app = middleware_chain({"errors": "off", "parseurl": False}, ok_app)
        assert app is ok_app

    def test_string_config(self):
        """Comma-separated string enables the named middleware."""
        app = middleware_chain("logging, parseurl", ok_app)
        assert isinstance(app.app.app, LoggingMiddleware)

    def test_options_from_dict(self):
        """{name}_middleware sections become constructor kwargs."""
        app = middleware_chain(
            {"logging": True},
            ok_app,
            full_config={
                "errors_middleware": {"debug": True},
                "parseurl_middleware": {"reject_malformed": False},
                "logging_middleware": {"level": "DEBUG"},
            },
        )
        assert app.debug is True
        assert app.app.reject_malformed is False
        assert app.app.app.level == logging.DEBUG


class TestParseURLMiddleware:
    """Test ParseURLMiddleware."""

    @pytest.mark.asyncio
    async def test_memoizes_on_scope(self):
        """Inner app gets the parse cached by the middleware."""
        seen: dict[str, Any] = {}

        async def app(scope, receive, send):
            seen["parsed"] = ScopeRequest(scope).parsed_url

        scope = make_scope("/users", query_string=b"page=2")
        await ParseURLMiddleware(app)(scope, None, None)

        cache = scope["_url_cache"]
        assert seen["parsed"] is cache.current
        assert cache.current.pathname == "/users"
        assert cache.current.query == "page=2"
        assert cache.original.pathname == "/users"

    @pytest.mark.asyncio
    async def test_skip_original(self):
        """parse_original=False leaves the original slot empty."""
        scope = make_scope("/users")
        await ParseURLMiddleware(ok_app, parse_original=False)(scope, None, SendRecorder())
        assert scope["_url_cache"].current is not None
        assert scope["_url_cache"].original is None

    @pytest.mark.asyncio
    async def test_websocket_scope(self):
        """WebSocket scopes are parsed too."""
        called = []

        async def app(scope, receive, send):
            called.append(True)

        scope = make_scope("/ws", scope_type="websocket")
        await ParseURLMiddleware(app)(scope, None, None)
        assert called
        assert scope["_url_cache"].current.pathname == "/ws"

    @pytest.mark.asyncio
    async def test_lifespan_passthrough(self):
        """Lifespan scopes are not touched."""
        called = []

        async def app(scope, receive, send):
            called.append(True)

        scope = {"type": "lifespan"}
        await ParseURLMiddleware(app)(scope, None, None)
        assert called
        assert "_url_cache" not in scope

    @pytest.mark.asyncio
    async def test_malformed_raises_400(self):
        """Unparsable targets raise HTTPException(400)."""
        scope = make_scope("*", raw_path=b"*")
        with pytest.raises(HTTPException) as exc_info:
            await ParseURLMiddleware(ok_app)(scope, None, SendRecorder())
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_passthrough(self, caplog):
        """reject_malformed=False lets the request through with a warning."""
        caplog.set_level(logging.WARNING, logger="genro_parseurl.middleware")
        send = SendRecorder()
        scope = make_scope("*", raw_path=b"*")
        await ParseURLMiddleware(ok_app, reject_malformed=False)(scope, None, send)
        assert send.status == 200
        assert scope["_url_cache"].current is None
        assert "Unparsable request URL" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_with_error_middleware(self):
        """Full chain answers 400 for an unparsable target."""
        app = middleware_chain({}, ok_app)
        send = SendRecorder()
        await app(make_scope("*", raw_path=b"*"), None, send)
        assert send.status == 400
        assert send.body == b"Malformed request URL"

    @pytest.mark.asyncio
    async def test_malformed_websocket_closed(self):
        """Unparsable WebSocket targets close the handshake with 1008."""
        called = []

        async def app(scope, receive, send):
            called.append(True)

        send = SendRecorder()
        scope = make_scope("*", raw_path=b"*", scope_type="websocket")
        await ParseURLMiddleware(app)(scope, None, send)
        assert send.messages == [{"type": "websocket.close", "code": 1008}]
        assert not called

    @pytest.mark.asyncio
    async def test_malformed_websocket_with_default_chain(self):
        """The default chain does not leak an exception for WebSocket scopes."""
        called = []

        async def app(scope, receive, send):
            called.append(True)

        send = SendRecorder()
        await middleware_chain({}, app)(
            make_scope("*", raw_path=b"*", scope_type="websocket"), None, send
        )
        assert send.messages == [{"type": "websocket.close", "code": 1008}]
        assert not called


class TestErrorMiddleware:
    """Test ErrorMiddleware."""

    @pytest.mark.asyncio
    async def test_http_exception(self):
        """HTTPException becomes a plain-text response with headers."""

        async def app(scope, receive, send):
            raise HTTPException(404, detail="Not here", headers={"x-reason": "gone"})

        send = SendRecorder()
        await ErrorMiddleware(app)(make_scope(), None, send)
        assert send.status == 404
        assert send.body == b"Not here"
        assert (b"x-reason", b"gone") in send.messages[0]["headers"]

    @pytest.mark.asyncio
    async def test_unhandled_exception(self):
        """Other exceptions become 500 without traceback."""

        async def app(scope, receive, send):
            raise RuntimeError("boom")

        send = SendRecorder()
        await ErrorMiddleware(app)(make_scope(), None, send)
        assert send.status == 500
        assert send.body == b"Internal Server Error"

    @pytest.mark.asyncio
    async def test_debug_traceback(self):
        """debug=True includes the traceback."""

        async def app(scope, receive, send):
            raise RuntimeError("boom")

        send = SendRecorder()
        await ErrorMiddleware(app, debug=True)(make_scope(), None, send)
        assert send.status == 500
        assert b"RuntimeError: boom" in send.body

    @pytest.mark.asyncio
    async def test_non_http_propagates(self):
        """Non-HTTP scopes are not wrapped."""

        async def app(scope, receive, send):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await ErrorMiddleware(app)(make_scope(scope_type="websocket"), None, None)


class TestLoggingMiddleware:
    """Test LoggingMiddleware."""

    @pytest.mark.asyncio
    async def test_access_log(self, caplog):
        """Request and response lines use the parsed path and search."""
        caplog.set_level(logging.INFO, logger="genro_parseurl.access")
        await LoggingMiddleware(ok_app)(
            make_scope("/users", query_string=b"page=2"), None, SendRecorder()
        )
        assert "<- GET /users?page=2 from 127.0.0.1" in caplog.text
        assert "-> GET /users?page=2 200" in caplog.text

    @pytest.mark.asyncio
    async def test_without_query(self, caplog):
        """include_query=False logs the pathname only."""
        caplog.set_level(logging.INFO, logger="genro_parseurl.access")
        await LoggingMiddleware(ok_app, include_query=False)(
            make_scope("/users", query_string=b"page=2"), None, SendRecorder()
        )
        assert "<- GET /users from 127.0.0.1" in caplog.text

    @pytest.mark.asyncio
    async def test_reuses_memoized_parse(self):
        """The parse cached by ParseURLMiddleware is the one logged."""
        scope = make_scope("/users")
        await ParseURLMiddleware(LoggingMiddleware(ok_app))(scope, None, SendRecorder())
        parsed = scope["_url_cache"].current
        assert ScopeRequest(scope).parsed_url is parsed

    @pytest.mark.asyncio
    async def test_unparsable_target_logged_raw(self, caplog):
        """Malformed targets are logged as received."""
        caplog.set_level(logging.INFO, logger="genro_parseurl.access")
        await LoggingMiddleware(ok_app)(make_scope("*", raw_path=b"*"), None, SendRecorder())
        assert "<- GET * from 127.0.0.1" in caplog.text

    @pytest.mark.asyncio
    async def test_error_logged(self, caplog):
        """Exceptions are logged at ERROR and re-raised."""
        caplog.set_level(logging.INFO, logger="genro_parseurl.access")

        async def app(scope, receive, send):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await LoggingMiddleware(app)(make_scope("/x"), None, SendRecorder())
        assert "-> GET /x ERROR: boom" in caplog.text
