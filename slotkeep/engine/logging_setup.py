"""Logging configuration for applications embedding slotkeep.

The library itself only creates module loggers under ``slotkeep``; hosts call
``configure_logging`` once at startup. Per-file read/write chatter from the
slot store stays at INFO unless ``file_debug`` is set, even in debug mode.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)5s] %(name)s: %(message)s"
PACKAGE_LOGGER = "slotkeep"
FILE_STORE_LOGGER = "slotkeep.engine.slot_files"


def configure_logging(debug: bool = False, file_debug: bool = False) -> logging.Logger:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    store_level = logging.DEBUG if file_debug else max(level, logging.INFO)
    logging.getLogger(FILE_STORE_LOGGER).setLevel(store_level)
    return package_logger
