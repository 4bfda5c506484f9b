"""Logging helpers for tagsql.

Loggers are named under the `tagsql` namespace. Registries and compilers log
their steps at DEBUG; `Logger.message` reports engine lifecycle events at the
level named by `LOG_LEVEL`.
"""

import logging
from typing import Optional

from tagsql.settings import settings as api_settings

ROOT_NAME = "tagsql"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _level_for(name: Optional[str]) -> int:
    # Unknown or empty names fall back to INFO
    level = logging.getLevelName((name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def setup_global_logging(level: str = "INFO") -> None:
    """Configure the root logger once.

    Later calls are no-ops, so an application that configured logging first
    keeps its own handlers.
    """
    global _configured
    if _configured:
        return
    logging.basicConfig(level=_level_for(level), format=LOG_FORMAT)
    _configured = True


def get_logger(name: Optional[str] = None) -> "Logger":
    return Logger(name)


class Logger:
    """Logger bound to a name under the `tagsql` namespace."""

    def __init__(self, name: Optional[str] = None) -> None:
        if not _configured:
            setup_global_logging(api_settings.LOG_LEVEL)
        if not name:
            name = ROOT_NAME
        elif name != ROOT_NAME and not name.startswith(ROOT_NAME + "."):
            name = f"{ROOT_NAME}.{name}"
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def message(self, msg: str, *args, **kwargs) -> None:
        """Log a lifecycle event at the configured LOG_LEVEL (INFO when unset)."""
        self._logger.log(_level_for(api_settings.LOG_LEVEL), msg, *args, **kwargs)
