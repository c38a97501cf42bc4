# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Middleware configuration - loads which middleware run and their options.

Config precedence (later overrides earlier):
    1. Built-in MIDDLEWARE_DEFAULTS
    2. YAML file: explicit ``config_file``, ``--config``/``GENRO_PARSEURL_CONFIG``,
       or ``<config_dir>/config.yaml`` (``config_dir`` falls back to
       ``GENRO_PARSEURL_CONFIG_DIR``, then the current directory)
    3. Explicit constructor parameters

Example config.yaml::

    middleware:
      logging: on

    logging_middleware:
      logger_name: "myapp.access"
      level: "DEBUG"

    parseurl_middleware:
      reject_malformed: false
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from genro_toolbox import SmartOptions  # type: ignore[import-untyped]

__all__ = ["ParseUrlConfig"]

MIDDLEWARE_DEFAULTS = {"errors": True, "parseurl": True}


def _config_cli_options(config_dir: str, config: str) -> None:
    """Reference function for SmartOptions type extraction (no defaults).

    Only locates the YAML file: ``GENRO_PARSEURL_CONFIG_DIR``/``GENRO_PARSEURL_CONFIG``
    or ``--config``. Middleware options come from the file and the constructor.
    """


class ParseUrlConfig:
    """Configuration consumed by ``middleware_chain``."""

    __slots__ = ("_opts",)

    def __init__(
        self,
        config_dir: str | Path | None = None,
        config_file: str | Path | None = None,
        middleware: dict[str, Any] | None = None,
        argv: list[str] | None = None,
        **sections: Any,
    ) -> None:
        """Build configuration.

        Args:
            config_dir: Directory searched for config.yaml. Defaults to cwd.
            config_file: Explicit YAML file, overrides config_dir lookup.
            middleware: {name: on/off} overrides.
            argv: Command line arguments (``--config``).
            **sections: ``{name}_middleware`` option dicts.
        """
        self._opts = self._build_config(
            config_dir=config_dir,
            config_file=config_file,
            middleware=middleware,
            argv=argv or [],
            sections=sections,
        )

    def _build_config(
        self,
        config_dir: str | Path | None,
        config_file: str | Path | None,
        middleware: dict[str, Any] | None,
        argv: list[str],
        sections: dict[str, Any],
    ) -> SmartOptions:
        env_argv_opts = SmartOptions(_config_cli_options, env="GENRO_PARSEURL", argv=argv)

        resolved_dir = Path(config_dir or env_argv_opts["config_dir"] or ".").resolve()
        config_path = Path(config_file or env_argv_opts["config"] or resolved_dir / "config.yaml")
        if config_path.exists():
            file_config = SmartOptions(str(config_path))
        else:
            file_config = SmartOptions({})

        config = file_config + SmartOptions(sections, ignore_none=True)

        middleware_opts = (
            SmartOptions(MIDDLEWARE_DEFAULTS)
            + (file_config["middleware"] or SmartOptions({}))
            + SmartOptions(middleware or {}, ignore_none=True)
        )
        config["middleware"] = middleware_opts
        return config

    @property
    def middleware(self) -> SmartOptions:
        """Middleware on/off map."""
        result: SmartOptions = self._opts["middleware"]
        return result

    def middleware_options(self, name: str) -> dict[str, Any]:
        """Return the ``{name}_middleware`` section as a plain dict."""
        section = self._opts[f"{name}_middleware"]
        if section is None:
            return {}
        if hasattr(section, "as_dict"):
            return dict(section.as_dict())
        return dict(section)

    def __getitem__(self, name: str) -> Any:
        """Proxy bracket access to underlying opts."""
        return self._opts[name]
