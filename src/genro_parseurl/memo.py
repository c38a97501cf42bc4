# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
Per-request memoization of URL parses.

Purpose
=======
Every middleware layer that looks at the path or query of a request calls
``parse_request_url(request)``. The first call parses, later calls return the
same ``ParsedURL`` object as long as ``request.url`` has not been reassigned.

Request Contract
================
Any object with:

- ``url``: raw URL string, or None when the request has no URL
- ``original_url`` (optional): URL as originally received
- ``url_cache`` (optional): a ``URLCache``; created and assigned on first use
  when missing or None

Cache Record::

    request.url_cache ── URLCache
                          ├── current   ParsedURL(raw=request.url)
                          └── original  ParsedURL(raw=request.original_url)

A slot whose ``raw`` tag differs from the field it was derived from is stale
and is replaced on the next call. The two slots never share entries, so
rewriting ``request.url`` leaves the original parse cached.

Example::

    from types import SimpleNamespace
    from genro_parseurl import parse_request_url

    request = SimpleNamespace(url="/users?page=2")
    first = parse_request_url(request)
    assert parse_request_url(request) is first

    request.url = "/users?page=3"
    assert parse_request_url(request).query == "page=3"

Concurrency
===========
No locking. Handlers over one request are expected to run one after another.
"""

from __future__ import annotations

import logging
from typing import Any

from .parsed_url import ParsedURL
from .parser import fastparse, is_fresh

__all__ = ["URLCache", "parse_original_request_url", "parse_request_url"]

logger = logging.getLogger("genro_parseurl.memo")


class URLCache:
    """Cache record attached to one request.

    Attributes:
        current: Memoized parse of ``request.url``.
        original: Memoized parse of ``request.original_url``.
    """

    __slots__ = ("current", "original")

    def __init__(self) -> None:
        self.current: ParsedURL | None = None
        self.original: ParsedURL | None = None

    def clear(self) -> None:
        """Drop both memoized parses."""
        self.current = None
        self.original = None

    def __repr__(self) -> str:
        return f"URLCache(current={self.current!r}, original={self.original!r})"


def _cache_of(request: Any) -> URLCache:
    cache = getattr(request, "url_cache", None)
    if cache is None:
        cache = URLCache()
        request.url_cache = cache
    return cache


def _parse_and_tag(raw: str) -> ParsedURL:
    parsed = fastparse(raw)
    parsed.raw = raw
    return parsed


def parse_request_url(request: Any) -> ParsedURL | None:
    """Parse ``request.url`` with memoization.

    Args:
        request: Object exposing ``url`` (see module docstring).

    Returns:
        The memoized ParsedURL, or None if ``request.url`` is None.

    Raises:
        MalformedURLError: If the URL is not origin-relative and the general
            parser rejects it. Nothing is cached in that case.
    """
    url = getattr(request, "url", None)
    if url is None:
        return None

    cache = _cache_of(request)
    if is_fresh(url, cache.current):
        return cache.current

    logger.debug(f"Parsing request url {url!r}")
    cache.current = _parse_and_tag(url)
    return cache.current


def parse_original_request_url(request: Any) -> ParsedURL | None:
    """Parse ``request.original_url`` with memoization.

    Falls back to ``parse_request_url`` when the request carries no original
    URL string.

    Args:
        request: Object exposing ``url`` and optionally ``original_url``.

    Returns:
        The memoized ParsedURL of the original URL, or of ``request.url`` on
        fallback (None if that is None too).

    Raises:
        MalformedURLError: As for ``parse_request_url``.
    """
    original_url = getattr(request, "original_url", None)
    if not isinstance(original_url, str):
        return parse_request_url(request)

    cache = _cache_of(request)
    if is_fresh(original_url, cache.original):
        return cache.original

    logger.debug(f"Parsing original request url {original_url!r}")
    cache.original = _parse_and_tag(original_url)
    return cache.original
