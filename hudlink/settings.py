"""Configuration helpers and shared constants for hudlink."""

from __future__ import annotations

import logging

CONFIG_FILE = "hudlink.json"
LOG_LEVEL = logging.INFO
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_RECONNECT_PERIOD = 2.0
MAX_RECONNECT_PERIOD = 300.0
DEFAULT_BAUDRATE = 115200
DEFAULT_RFCOMM_CHANNEL = 1


def configure_logging(
    *, level: int = LOG_LEVEL, fmt: str = LOG_FORMAT, force: bool = False
) -> None:
    """Initialize the root logger used across hudlink."""

    if force:
        logging.basicConfig(level=level, format=fmt, force=True)
        return

    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=level, format=fmt)
