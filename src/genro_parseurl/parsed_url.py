# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Parsed URL record returned by the URL parsers.

Purpose
=======
Holds the structural components of a request URL. The same record type is
produced by the fast path (origin-relative paths) and by the general parser
(absolute URLs), so middleware reads ``pathname``/``query``/``search`` without
caring which parser ran.

Field Schema::

    /users/42?tab=posts
    ─────────  ────────
    pathname   query
             ─────────
             search

    https://example.com:8080/users?tab=posts#top
    ─────   ────────────────                 ───
    scheme  netloc                           fragment
            ───────────  ────
            hostname     port

Definition::

    class ParsedURL:
        __slots__ = ("href", "path", "pathname", "query", "search", "scheme",
                     "netloc", "hostname", "port", "fragment", "raw")

        @property host -> str | None
        def as_dict(self) -> dict[str, Any]
        def __str__(self) -> str
        def __repr__(self) -> str
        def __eq__(self, other: object) -> bool

Design Notes
============
- Uses ``__slots__`` for memory efficiency
- Fast-path results leave the authority fields (``scheme``, ``netloc``,
  ``hostname``, ``port``, ``fragment``) as ``None``
- ``raw`` is the freshness tag written by the memoized parse; it is not part
  of equality and callers must not modify it
"""

from __future__ import annotations

from typing import Any

__all__ = ["ParsedURL"]

_PUBLIC_FIELDS = (
    "href",
    "path",
    "pathname",
    "query",
    "search",
    "scheme",
    "netloc",
    "hostname",
    "port",
    "fragment",
)


class ParsedURL:
    """
    Structural breakdown of a raw URL string.

    Attributes:
        href: Full URL string (trimmed raw string on the fast path).
        path: Path plus search, as used in an HTTP request line.
        pathname: Path component only, without query or fragment.
        query: Query string without the leading "?", or None.
        search: Query string with the leading "?", or "" when absent.
        scheme: Lowercase URL scheme, or None for origin-relative paths.
        netloc: Network location including userinfo and port, or None.
        hostname: Lowercase host name, or None.
        port: Port number, or None.
        fragment: Fragment without the leading "#", or None.
        raw: Raw string this record was parsed from (freshness tag).

    Example:
        >>> url = ParsedURL(href="/a?b=1", path="/a?b=1", pathname="/a",
        ...                 query="b=1", search="?b=1")
        >>> url.pathname
        '/a'
        >>> str(url)
        '/a?b=1'
    """

    __slots__ = (*_PUBLIC_FIELDS, "raw")

    def __init__(
        self,
        href: str,
        path: str,
        pathname: str,
        query: str | None = None,
        search: str = "",
        scheme: str | None = None,
        netloc: str | None = None,
        hostname: str | None = None,
        port: int | None = None,
        fragment: str | None = None,
    ) -> None:
        self.href = href
        self.path = path
        self.pathname = pathname
        self.query = query
        self.search = search
        self.scheme = scheme
        self.netloc = netloc
        self.hostname = hostname
        self.port = port
        self.fragment = fragment
        self.raw: str | None = None

    @property
    def host(self) -> str | None:
        """Hostname with port when explicit, or None if there is no host."""
        if self.hostname is None:
            return None
        if self.port is None:
            return self.hostname
        return f"{self.hostname}:{self.port}"

    def as_dict(self) -> dict[str, Any]:
        """Return the public fields as a plain dict (``raw`` excluded)."""
        return {name: getattr(self, name) for name in _PUBLIC_FIELDS}

    def __str__(self) -> str:
        return self.href

    def __repr__(self) -> str:
        return f"ParsedURL({self.href!r})"

    def __eq__(self, other: object) -> bool:
        """Compare public fields; the freshness tag is ignored."""
        if not isinstance(other, ParsedURL):
            return NotImplemented
        return self.as_dict() == other.as_dict()
