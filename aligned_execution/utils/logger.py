"""
Logging configuration
"""
import logging
import sys
from typing import Optional

from aligned_execution.config import get_settings

PACKAGE_LOGGER = "aligned_execution"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(debug: Optional[bool] = None) -> logging.Logger:
    """Attach a stdout handler to the package logger (once) and set its level"""
    if debug is None:
        debug = get_settings().DEBUG

    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package hierarchy, configuring it on first use"""
    configure_logging()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
