"""Engine configuration accessors.

Centralizes environment variable parsing & defaults. Values are read on
every call so tests (and operators reloading a worker) can change them with
plain environment updates. The Flask adaptor lets ``app.config`` keys of the
same names take precedence, see ``lace.startup.wiring``.
"""
from __future__ import annotations

import os
from functools import lru_cache

APP_NAME = "lace"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "DOM component view engine with a Flask adaptor"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_COMPONENT_PREFIX = "view"
_TRUE = {"1", "true", "yes", "on"}


def _raw_env(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    return val if val is not None else default


def env_bool(name: str, default: bool = False) -> bool:
    raw = _raw_env(name, str(default).lower())
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE


def log_level_name() -> str:
    return _raw_env("LACE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()  # type: ignore[union-attr]


def component_prefix() -> str:
    """Tag prefix for convention-resolved components (``<view-...>``)."""
    value = (_raw_env("LACE_COMPONENT_PREFIX", DEFAULT_COMPONENT_PREFIX) or "").strip().lower()
    return value or DEFAULT_COMPONENT_PREFIX


def template_dir() -> str | None:
    """Fallback search path for ``template_file`` views.

    Environment Variable: LACE_TEMPLATE_DIR
    Only consulted when a factory was created without a Jinja loader.
    """
    value = os.getenv("LACE_TEMPLATE_DIR")
    if value is None:
        return None
    value = value.strip()
    return value or None


def strict_parse() -> bool:
    """Whether unclosed elements in a template raise ``ParseError``."""
    return env_bool("LACE_STRICT_PARSE", default=True)


@lru_cache(maxsize=1)
def metadata() -> dict:
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "description": APP_DESCRIPTION,
    }


def summarize_runtime_config() -> dict:
    return {
        "log_level": log_level_name(),
        "component_prefix": component_prefix(),
        "template_dir": template_dir(),
        "strict_parse": strict_parse(),
    }


__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "APP_DESCRIPTION",
    "DEFAULT_COMPONENT_PREFIX",
    "env_bool",
    "log_level_name",
    "component_prefix",
    "template_dir",
    "strict_parse",
    "metadata",
    "summarize_runtime_config",
]
