"""Runtime infrastructure for tipscan.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Scanner threshold loading via load_scanner_config()

Usage:
    from tipscan.runtime import get_logger, get_paths, load_scanner_config

    logger = get_logger(__name__)
    config = load_scanner_config()
"""

from tipscan.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from tipscan.runtime.paths import (
    ProjectPaths,
    get_paths,
    reset_paths,
)
from tipscan.runtime.scanner_config import load_scanner_config

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Config
    "load_scanner_config",
    # Paths
    "get_paths",
    "reset_paths",
    "ProjectPaths",
]
