# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""
URL parsers: fast path for origin-relative paths, general parser for the rest.

Purpose
=======
Request URLs seen by server middleware are almost always origin-relative
(``/users/42?tab=posts``). ``fastparse`` splits those with a single scan for
the first ``?`` and hands everything else to ``parse_absolute``, a thin
wrapper around ``urllib.parse.urlsplit`` that rejects strings it cannot treat
as absolute URLs.

Decision Flow::

    raw ─┬─ not str / no leading "/" ──────────────► parse_absolute(raw)
         │                                            (MalformedURLError propagates)
         └─ leading "/" ─┬─ no unsafe character ───► fast-path split
                         └─ unsafe character ──┬──► parse_absolute(raw) if it succeeds
                                               └──► fast-path split otherwise

Unsafe characters are TAB, LF, FF, CR, SPACE, "#", U+00A0 and U+FEFF.

Fall-through
============
When an unsafe character is found, the general parser is attempted on the
whole string. For a string starting with "/" it has no scheme, so the attempt
fails and the fast-path split is used anyway: ``/a b`` parses with pathname
``/a b`` and ``/a#b`` with pathname ``/a#b`` (no fragment). Callers that need
strict rejection of raw whitespace or fragments must check for them
themselves.

Freshness
=========
``is_fresh(raw, cached)`` is the only cache validity test used by
``genro_parseurl.memo``: exact string equality with the tag stored on the
cached record. No normalization, no case folding, no trimming.

Example::

    from genro_parseurl.parser import fastparse

    url = fastparse("/foo/bar?baz=1")
    url.pathname  # "/foo/bar"
    url.query     # "baz=1"
    url.search    # "?baz=1"
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from .exceptions import MalformedURLError
from .parsed_url import ParsedURL

__all__ = ["SPECIAL_SCHEMES", "fastparse", "is_fresh", "parse_absolute"]

logger = logging.getLogger("genro_parseurl.parser")

SPECIAL_SCHEMES = frozenset({"ftp", "http", "https", "ws", "wss"})

# ECMAScript WhiteSpace and LineTerminator code points; C0 controls are kept
_WHITESPACE = r"\t\n\v\f\r \xa0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
_TRIM = re.compile(f"^[{_WHITESPACE}]+|[{_WHITESPACE}]+$")
_UNSAFE = re.compile(r"[\t\n\f\r #\xa0\ufeff]")


def _trim(text: str) -> str:
    return _TRIM.sub("", text)


def parse_absolute(raw: Any) -> ParsedURL:
    """Parse an absolute URL with ``urllib.parse.urlsplit``.

    Args:
        raw: URL string. Leading and trailing whitespace is ignored.

    Returns:
        ParsedURL with scheme and authority fields populated.

    Raises:
        MalformedURLError: If ``raw`` is not a string, has no scheme, has a
            special scheme (http, https, ws, wss, ftp) without a host, or has
            an invalid IPv6 literal or port.
    """
    if not isinstance(raw, str):
        raise MalformedURLError(raw, "URL must be a string")

    try:
        parts = urlsplit(_trim(raw))
        port = parts.port
    except ValueError as e:
        raise MalformedURLError(raw, str(e)) from e

    if not parts.scheme:
        raise MalformedURLError(raw, "missing scheme")
    special = parts.scheme in SPECIAL_SCHEMES
    if special and not parts.hostname:
        raise MalformedURLError(raw, "missing host")

    # Special schemes always have a path, as in a browser address bar
    pathname = parts.path or ("/" if special else "")
    search = f"?{parts.query}" if parts.query else ""

    return ParsedURL(
        href=urlunsplit(parts._replace(path=pathname)),
        path=pathname + search,
        pathname=pathname,
        query=parts.query or None,
        search=search,
        scheme=parts.scheme,
        netloc=parts.netloc or None,
        hostname=parts.hostname,
        port=port,
        fragment=parts.fragment or None,
    )


def _try_absolute(raw: str) -> ParsedURL | None:
    """Attempt the general parser; None means continue with the fast path."""
    try:
        return parse_absolute(raw)
    except MalformedURLError as e:
        logger.debug(f"Fast path fall-through for {raw!r}: {e.detail}")
        return None


def fastparse(raw: Any) -> ParsedURL:
    """Parse a raw request URL, short-circuiting origin-relative paths.

    Args:
        raw: Raw URL string as found on the request.

    Returns:
        ParsedURL. For the fast path ``href``/``path`` are the trimmed raw
        string, ``pathname`` is the trimmed part before the first "?",
        ``query``/``search`` the untrimmed part after it (``None``/``""``
        without a "?").

    Raises:
        MalformedURLError: If ``raw`` does not start with "/" and the general
            parser rejects it.
    """
    if not isinstance(raw, str) or not raw.startswith("/"):
        return parse_absolute(raw)

    if _UNSAFE.search(raw, 1) is not None:
        parsed = _try_absolute(raw)
        if parsed is not None:
            return parsed

    # Only the first "?" splits; later ones belong to the query
    pathname, sep, query = raw.partition("?")
    href = _trim(raw)
    url = ParsedURL(href=href, path=href, pathname=_trim(pathname))
    if sep:
        url.query = query
        url.search = sep + query
    return url


def is_fresh(raw: Any, cached: Any) -> bool:
    """Return True if ``cached`` is a ParsedURL tagged with exactly ``raw``."""
    return isinstance(cached, ParsedURL) and isinstance(raw, str) and cached.raw == raw
