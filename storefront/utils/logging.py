"""Root logger setup for the storefront web runtime.

The level comes from, in order: ``STOREFRONT_LOG_LEVEL``, a truthy
``STOREFRONT_DEBUG``, the debug toggle in Settings, then INFO.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"
LEVEL_ENV = "STOREFRONT_LOG_LEVEL"
DEBUG_ENV = "STOREFRONT_DEBUG"

# Chatty third-party loggers held at WARNING unless DEBUG is forced.
_NOISY_LOGGERS = ("urllib3", "nicegui", "watchfiles")


def _parse_level(value: Optional[str]) -> Optional[int]:
    text = (value or "").strip()
    if not text:
        return None
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else None


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def env_level() -> Optional[int]:
    """Level forced by the environment, or ``None`` when nothing is set."""
    explicit = _parse_level(os.getenv(LEVEL_ENV))
    if explicit is not None:
        return explicit
    if _truthy(os.getenv(DEBUG_ENV)):
        return logging.DEBUG
    return None


def env_forces_debug() -> bool:
    level = env_level()
    return level is not None and level <= logging.DEBUG


def _quiet_third_party(effective: int) -> None:
    target = logging.NOTSET if effective <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(target)


def configure_root(default_level: int = logging.INFO) -> int:
    """Install the compact console handler once and return the active level."""
    forced = env_level()
    effective = forced if forced is not None else default_level

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=effective, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.setLevel(effective)
    _quiet_third_party(effective)
    return effective


def apply_ui_preferences(debug_enabled: bool) -> int:
    """Follow the Settings debug toggle unless the environment pins a level."""
    forced = env_level()
    if forced is not None:
        level = forced
    else:
        level = logging.DEBUG if debug_enabled else logging.INFO
    logging.getLogger().setLevel(level)
    _quiet_third_party(level)
    return level
