"""Process-wide logging setup.

Every module asks for its logger through ``get_logger(__name__)``. The first
call attaches one stream handler to the root logger; later calls only adjust
the level so the CLI and the API server can raise verbosity after startup.
"""

from __future__ import annotations

import logging
import os
from typing import Final

_HANDLER_ATTACHED: bool = False
_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"
_LEVEL_OVERRIDE: int | None = None


def _resolve_level() -> int:
    if _LEVEL_OVERRIDE is not None:
        return _LEVEL_OVERRIDE
    level_name = os.getenv("DAILYSPARK_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(level: str | None = None) -> None:
    """Pin the log level for the whole process (e.g. from Settings.log_level)."""
    global _LEVEL_OVERRIDE

    if level:
        _LEVEL_OVERRIDE = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger().setLevel(_resolve_level())
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("dailyspark"):
            logging.getLogger(name).setLevel(_resolve_level())


def get_logger(name: str) -> logging.Logger:
    """Return a module logger configured with a single stream handler."""
    global _HANDLER_ATTACHED

    level = _resolve_level()
    root = logging.getLogger()

    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        root.addHandler(handler)
        _HANDLER_ATTACHED = True
    root.setLevel(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
