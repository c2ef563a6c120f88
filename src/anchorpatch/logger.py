from __future__ import annotations

import logging
from typing import Optional

import structlog

from anchorpatch.settings import LogLevel

PACKAGE_LOGGER = "anchorpatch"


def configure_logging(
    level: LogLevel = LogLevel.info, log_file: Optional[str] = None
) -> Optional[logging.Handler]:
    """
    Set the stdlib level for the package logger and optionally log to a file.
    Returns the file handler so callers can detach it.
    """
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(level.value.upper())
    if log_file is None:
        return None
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    pkg_logger.addHandler(handler)
    return handler


structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(colors=False),
    ],
)

logger: structlog.BoundLogger = structlog.get_logger(PACKAGE_LOGGER)
