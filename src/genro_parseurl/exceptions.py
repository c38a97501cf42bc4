# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exception classes for genro-parseurl.

Module Structure
----------------
Two exception classes:

1. MalformedURLError - The general URL parser could not parse a string
2. HTTPException - For HTTP error responses (4xx, 5xx) from middleware

Design Decisions
----------------
- MalformedURLError inherits from ValueError, so callers already catching
  ``ValueError`` from ``urllib.parse`` keep working.
- No __slots__: Exceptions are short-lived and don't benefit from __slots__.
- headers: Accepts both dict[str, str] and list[tuple[str, str]], stored as
  list to allow duplicate names.

MalformedURLError
-----------------
Raised by ``parse_absolute`` (and therefore by ``fastparse`` and the memoized
parsers for non origin-relative input). Never raised for a string starting
with "/": the fast path absorbs those failures.

Attributes:
    url: The offending input (may be a non-string).
    detail (str): Why the input was rejected.

Example:
    >>> try:
    ...     parse_absolute("example.com/x")
    ... except MalformedURLError as e:
    ...     print(e.detail)
    missing scheme

HTTPException
-------------
Raised by middleware to return an HTTP error response. ErrorMiddleware
converts it into a plain-text response.

Example:
    >>> raise HTTPException(400, detail="Malformed request URL")
"""

from __future__ import annotations

from typing import Any

__all__ = ["HTTPException", "MalformedURLError"]


class MalformedURLError(ValueError):
    """
    URL string that the general parser cannot decompose.

    Attributes:
        url: The rejected input.
        detail: Reason for the rejection.
    """

    def __init__(self, url: Any, detail: str = "") -> None:
        self.url = url
        self.detail = detail
        super().__init__(f"Malformed URL {url!r}: {detail}" if detail else f"Malformed URL {url!r}")

    def __repr__(self) -> str:
        return f"MalformedURLError(url={self.url!r}, detail={self.detail!r})"


class HTTPException(Exception):
    """
    HTTP exception with status code and detail.

    Attributes:
        status_code: HTTP status code (expected 4xx or 5xx, not validated)
        detail: Error detail message
        headers: Response headers as list of tuples (supports duplicate names)

    Example:
        >>> raise HTTPException(400, detail="Malformed request URL")
    """

    def __init__(
        self,
        status_code: int,
        detail: str = "",
        headers: dict[str, str] | list[tuple[str, str]] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        if headers is None:
            self.headers: list[tuple[str, str]] | None = None
        elif isinstance(headers, dict):
            self.headers = list(headers.items())
        else:
            self.headers = list(headers)
        super().__init__(detail)

    def __repr__(self) -> str:
        return f"HTTPException(status_code={self.status_code}, detail={self.detail!r})"
