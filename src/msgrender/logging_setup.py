"""Logging configuration driven by the "logging" section of config.json.

Handlers go on the "msgrender" package logger rather than the root logger,
so an embedding application keeps control of its own logging setup.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

PACKAGE_LOGGER = "msgrender"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_PATH = "logs/msgrender.log"


def _file_handler(file_cfg: dict, base_dir: str) -> RotatingFileHandler:
    path = file_cfg.get("path", DEFAULT_LOG_PATH)
    if not os.path.isabs(path):
        path = os.path.join(base_dir, path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def configure_logging(config: Optional[dict], base_dir: str) -> List[logging.Handler]:
    """Attach console and/or rotating file handlers to the package logger.

    Does nothing unless config["enabled"] is true. Relative file paths are
    resolved against base_dir. Calling it again replaces the handlers from
    the previous call. Returns the handlers that were installed.
    """

    config = config or {}
    if not config.get("enabled", False):
        return []

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    handlers: List[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file") or {}
    if file_cfg.get("enabled", False):
        handlers.append(_file_handler(file_cfg, base_dir))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for old in package_logger.handlers[:]:
        package_logger.removeHandler(old)
        old.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    # Records already handled here should not be printed again by the root.
    package_logger.propagate = not handlers
    return handlers
