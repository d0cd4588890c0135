"""
Logging configuration for hosts embedding varakit.

Log records go to stderr only; stdout is left to whatever protocol the host
speaks.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "varakit"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)-5s %(message)s"

_HANDLER_FLAG = "_varakit_handler"


def configure_logging(level: int | str = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """
    Attach a stderr handler to the varakit logger.

    Calling this again only updates the level; no duplicate handlers are
    added.

    Args:
        level: Logging level or level name.
        stream: Stream to write to. Defaults to sys.stderr.

    Returns:
        The configured varakit logger, suitable for injecting into components.
    """
    pkg_logger = logging.getLogger(LOGGER_NAME)
    pkg_logger.setLevel(level.upper() if isinstance(level, str) else level)

    if any(getattr(h, _HANDLER_FLAG, False) for h in pkg_logger.handlers):
        return pkg_logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    setattr(handler, _HANDLER_FLAG, True)
    pkg_logger.addHandler(handler)

    return pkg_logger
