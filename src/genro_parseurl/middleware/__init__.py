# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Middleware package - ASGI middleware built on the memoized URL parsers."""

from __future__ import annotations

import importlib
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..types import ASGIApp, Receive, Scope, Send

MIDDLEWARE_REGISTRY: dict[str, type["BaseMiddleware"]] = {}


class BaseMiddleware(ABC):
    """Base class for all middleware. Subclasses auto-register via __init_subclass__.

    Class attributes:
        middleware_name: Registry key (default: class name).
        middleware_order: Order in chain (lower = earlier). Ranges:
            100: Core (errors)
            150: URL parsing
            200: Logging/Tracing
            500-800: Business logic (custom)
        middleware_default: Default on/off state. Default: False.
    """

    middleware_name: str = ""
    middleware_order: int = 500
    middleware_default: bool = False

    __slots__ = ("app",)

    def __init__(self, app: ASGIApp, **kwargs: Any) -> None:
        """Initialize middleware with wrapped app.

        Args:
            app: The ASGI app to wrap (next in chain).
            **kwargs: Middleware-specific configuration from YAML.
        """
        self.app = app

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        name = cls.middleware_name or cls.__name__
        if name in MIDDLEWARE_REGISTRY:
            raise ValueError(f"Middleware name '{name}' already registered")
        cls.middleware_name = name
        MIDDLEWARE_REGISTRY[name] = cls

    @abstractmethod
    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None: ...


def _autodiscover() -> None:
    """Import all middleware modules in this package to trigger registration."""
    package_dir = Path(__file__).parent
    for py_file in package_dir.glob("*.py"):
        if py_file.name.startswith("_"):
            continue
        importlib.import_module(f".{py_file.stem}", __package__)


def _options_for(full_config: Any, name: str) -> dict[str, Any]:
    """Return the ``{name}_middleware`` options from a config object or dict."""
    if full_config is None:
        return {}
    if hasattr(full_config, "middleware_options"):
        return full_config.middleware_options(name)
    if isinstance(full_config, Mapping):
        section = full_config.get(f"{name}_middleware")
        if section is None:
            return {}
        if hasattr(section, "as_dict"):
            return dict(section.as_dict())
        return dict(section)
    return {}


def middleware_chain(
    middleware_config: str | list[str] | dict[str, Any],
    app: ASGIApp,
    full_config: Any = None,
) -> ASGIApp:
    """Build middleware chain from config with automatic ordering.

    Uses middleware_order class attribute for sorting (lower = earlier in chain).
    Uses middleware_default class attribute for default on/off state.

    YAML format:
        middleware:
          logging: on
          parseurl: on  # default=True, so usually omitted

        parseurl_middleware:
          reject_malformed: false

    Args:
        middleware_config: Dict {name: on/off}, comma-separated string, or list.
        app: The innermost ASGI app.
        full_config: ParseUrlConfig or dict holding {name}_middleware sections.

    Returns:
        Wrapped ASGI app with middleware chain.
    """
    config_dict: dict[str, bool] = {}

    if isinstance(middleware_config, str):
        # "parseurl, logging" -> all enabled
        for name in middleware_config.split(","):
            name = name.strip()
            if name:
                config_dict[name] = True
    elif hasattr(middleware_config, "as_dict"):
        # SmartOptions
        for name, value in middleware_config.as_dict().items():  # type: ignore[union-attr]
            config_dict[name] = _parse_enabled(value)
    elif isinstance(middleware_config, dict):
        for name, value in middleware_config.items():
            config_dict[name] = _parse_enabled(value)
    elif middleware_config:
        for name in middleware_config:
            config_dict[name] = True

    enabled: list[tuple[int, str, type[BaseMiddleware]]] = []

    for name, cls in MIDDLEWARE_REGISTRY.items():
        if name in config_dict:
            is_enabled = config_dict[name]
        else:
            is_enabled = cls.middleware_default

        if is_enabled:
            enabled.append((cls.middleware_order, name, cls))

    enabled.sort(key=lambda x: x[0])

    # First in order = outermost wrapper
    for order, name, cls in reversed(enabled):
        app = cls(app, **_options_for(full_config, name))

    return app


def _parse_enabled(value: Any) -> bool:
    """Parse on/off/true/false value to bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("on", "true", "yes", "1")
    return bool(value)


_autodiscover()
globals().update(MIDDLEWARE_REGISTRY)

__all__ = [
    "BaseMiddleware",
    "MIDDLEWARE_REGISTRY",
    "middleware_chain",
    *MIDDLEWARE_REGISTRY.keys(),
]
