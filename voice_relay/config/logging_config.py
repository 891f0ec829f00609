"""
Logging setup for the relay.

Every module logs through the ``voice_relay`` logger. Output goes to stdout and,
unless ``LOG_FILE`` is set to an empty value, to a size-rotated file. The
loggers of the Twilio helper library and websockets are capped at WARNING so
REST request dumps and per-frame traffic stay out of call logs.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from voice_relay.config.constants import LOGGER_NAME

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# An empty LOG_FILE disables file logging
LOG_FILE = os.getenv("LOG_FILE", str(Path("logs") / "voice_relay.log"))
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

QUIET_LOGGERS = ("twilio.http_client", "websockets.client")


def _rotating_file_handler(path: str, formatter: logging.Formatter) -> logging.Handler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_path, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT)
    handler.setFormatter(formatter)
    return handler


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the relay logger. Safe to call again, e.g. once the CLI has parsed --log-level.

    Args:
        level: Level name overriding the LOG_LEVEL environment variable
        log_file: Path overriding the LOG_FILE environment variable; "" disables the file

    Returns:
        logging.Logger: The configured ``voice_relay`` logger
    """
    level_name = (level or LOG_LEVEL).upper()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    path = LOG_FILE if log_file is None else log_file
    if path:
        try:
            logger.addHandler(_rotating_file_handler(path, formatter))
        except OSError as e:
            # Read-only deployments keep console output only
            logger.warning(f"File logging disabled, cannot open {path}: {e}")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"Logging configured at {level_name}")
    return logger
