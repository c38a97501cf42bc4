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

"""
ASGI request adapter for the memoized URL parsers.

ASGI has no ``url`` field: the request target is split into ``path`` (or the
undecoded ``raw_path``) and ``query_string``. ``ScopeRequest`` rebuilds the
raw request target once and keeps it, together with the cache record, inside
the scope itself, so every middleware layer that wraps the same scope sees the
same URL and the same memoized parses.

Scope keys written by ScopeRequest::

    scope["_url"]           current raw URL (rewritable by middleware)
    scope["_original_url"]  raw URL as received, recorded once
    scope["_url_cache"]     URLCache shared by all views of the scope

Example::

    request = ScopeRequest(scope)
    request.parsed_url.pathname      # "/api/users"

    # A mounting middleware strips its prefix
    request.url = "/users"
    ScopeRequest(scope).parsed_url.pathname           # "/users"
    ScopeRequest(scope).parsed_original_url.pathname  # "/api/users"
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

from .memo import URLCache, parse_original_request_url, parse_request_url
from .types import Scope

if TYPE_CHECKING:
    from .parsed_url import ParsedURL

__all__ = ["ScopeRequest", "raw_url_from_scope"]

# RFC 3986 pchar delimiters plus "/"
_PATH_SAFE = "/:@!$&'()*+,;=~"


def raw_url_from_scope(scope: Scope) -> str | None:
    """Rebuild the raw request target from an ASGI scope.

    Prefers ``raw_path`` (bytes as sent by the client). Without it the decoded
    ``path`` is percent-encoded again, so a literal ``?`` or space in a path
    segment cannot leak into the query or the unsafe-character scan. Returns
    None for scopes without a path (e.g. lifespan).
    """
    raw_path = scope.get("raw_path")
    if raw_path:
        target = raw_path.decode("latin-1")
    else:
        target = scope.get("path")
        if target is None:
            return None
        target = quote(target, safe=_PATH_SAFE)

    query_string = scope.get("query_string", b"")
    if query_string:
        target += f"?{query_string.decode('latin-1')}"
    return target


class ScopeRequest:
    """Stateless view over an ASGI scope exposing ``url`` and ``original_url``."""

    __slots__ = ("_scope",)

    def __init__(self, scope: Scope) -> None:
        self._scope = scope

    @property
    def scope(self) -> Scope:
        """Raw ASGI scope dict."""
        return self._scope

    @property
    def url(self) -> str | None:
        """Current raw URL. Initialized from the scope on first access."""
        if "_url" not in self._scope:
            url = raw_url_from_scope(self._scope)
            self._scope["_url"] = url
            self._scope.setdefault("_original_url", url)
        return self._scope["_url"]

    @url.setter
    def url(self, value: str | None) -> None:
        if "_url" not in self._scope:
            self._scope.setdefault("_original_url", raw_url_from_scope(self._scope))
        self._scope["_url"] = value

    @property
    def original_url(self) -> str | None:
        """Raw URL as received, unaffected by later rewrites of ``url``."""
        if "_url" not in self._scope:
            return self.url
        return self._scope.get("_original_url")

    @property
    def url_cache(self) -> URLCache:
        cache = self._scope.get("_url_cache")
        if cache is None:
            cache = self._scope["_url_cache"] = URLCache()
        return cache

    @property
    def parsed_url(self) -> ParsedURL | None:
        """Memoized parse of ``url``."""
        return parse_request_url(self)

    @property
    def parsed_original_url(self) -> ParsedURL | None:
        """Memoized parse of ``original_url`` (falls back to ``url``)."""
        return parse_original_request_url(self)

    def __repr__(self) -> str:
        return f"<ScopeRequest type={self._scope.get('type')!r} url={self._scope.get('_url')!r}>"
