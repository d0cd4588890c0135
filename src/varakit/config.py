"""
Process-level settings read from the environment.

The command allowlist is not configurable here; it lives in code.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

WORKSPACE_ROOT_ENV = "VARA_WORKSPACE_ROOT"
LOG_LEVEL_ENV = "VARA_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    """
    Host configuration.

    Attributes:
        workspace_root: Absolute sandbox root for all writes and working
            directories.
        log_level: Name of the logging level for the varakit logger.
    """

    workspace_root: str
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """
        Build settings from environment variables.

        Reads VARA_WORKSPACE_ROOT (default: current directory) and
        VARA_LOG_LEVEL (default: INFO).

        Raises:
            ValueError: If the log level is not a known logging level name.
        """
        env = os.environ if environ is None else environ

        root = env.get(WORKSPACE_ROOT_ENV) or os.getcwd()
        level = (env.get(LOG_LEVEL_ENV) or "INFO").upper()

        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level in {LOG_LEVEL_ENV}: {level!r}")

        return cls(workspace_root=os.path.abspath(os.path.expanduser(root)), log_level=level)
