# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""genro-parseurl - Memoized request URL parsing for ASGI middleware.

Main components:
    parse_request_url: Memoized parse of request.url
    parse_original_request_url: Memoized parse of request.original_url
    fastparse: Fast path for origin-relative paths, urlsplit for the rest
    ScopeRequest: ASGI scope adapter holding url, original_url and cache

Middleware:
    ErrorMiddleware: HTTPException and error responses
    ParseURLMiddleware: Eager URL parsing, 400 on malformed targets
    LoggingMiddleware: Access log using the memoized parse

Usage:
    from genro_parseurl import ScopeRequest

    async def app(scope, receive, send):
        url = ScopeRequest(scope).parsed_url
        print(url.pathname, url.query)
"""

__version__ = "0.1.0"

from .config import ParseUrlConfig
from .exceptions import HTTPException, MalformedURLError
from .memo import URLCache, parse_original_request_url, parse_request_url
from .middleware import BaseMiddleware, MIDDLEWARE_REGISTRY, middleware_chain
from .middleware.errors import ErrorMiddleware
from .middleware.logging import LoggingMiddleware
from .middleware.parseurl import ParseURLMiddleware
from .parsed_url import ParsedURL
from .parser import fastparse, is_fresh, parse_absolute
from .request import ScopeRequest, raw_url_from_scope
from .types import ASGIApp, Message, Receive, Scope, Send

__all__ = [
    # Memoized parsing
    "parse_request_url",
    "parse_original_request_url",
    "URLCache",
    # Parsers
    "fastparse",
    "parse_absolute",
    "is_fresh",
    "ParsedURL",
    # ASGI adapter
    "ScopeRequest",
    "raw_url_from_scope",
    # Exceptions
    "MalformedURLError",
    "HTTPException",
    # Middleware
    "BaseMiddleware",
    "MIDDLEWARE_REGISTRY",
    "middleware_chain",
    "ErrorMiddleware",
    "LoggingMiddleware",
    "ParseURLMiddleware",
    # Configuration
    "ParseUrlConfig",
    # ASGI types
    "ASGIApp",
    "Message",
    "Receive",
    "Scope",
    "Send",
]
