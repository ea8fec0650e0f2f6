"""
Logging configuration for the weather batch service.

Records go to stdout and to two size-rotated files under LOG_DIR:
weather_batch.log (INFO and up) and weather_batch_errors.log (ERROR only).
LOG_LEVEL sets the root level, LOG_MAX_BYTES and LOG_BACKUP_COUNT the
rotation. DEBUG switches to a layout with function and line numbers.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from weather_batch.config import Settings, settings

LOG_FILE = "weather_batch.log"
ERROR_LOG_FILE = "weather_batch_errors.log"

# Libraries that are chatty at INFO
QUIET_LOGGERS = ("httpx", "uvicorn.access", "sqlalchemy.engine")


def _formatter(debug: bool) -> logging.Formatter:
    if debug:
        fmt = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
    else:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    return logging.Formatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")


def _rotating_handler(path: Path, level: int, config: Settings) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=config.LOG_MAX_BYTES,
        backupCount=config.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_logging(config: Optional[Settings] = None) -> logging.Logger:
    """
    Configure the root logger for the API process and the job launcher.

    Args:
        config: Settings to read; defaults to the process settings

    Returns:
        The root logger. Calling again replaces its handlers.
    """
    config = config or settings
    log_dir = Path(config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(config.LOG_LEVEL)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if config.DEBUG else logging.INFO)

    handlers = [
        console_handler,
        _rotating_handler(log_dir / LOG_FILE, logging.INFO, config),
        _rotating_handler(log_dir / ERROR_LOG_FILE, logging.ERROR, config),
    ]
    formatter = _formatter(config.DEBUG)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        f"{config.SERVER_NAME} logging: level={config.LOG_LEVEL} dir={log_dir} "
        f"rotation={config.LOG_MAX_BYTES} bytes x {config.LOG_BACKUP_COUNT}"
    )
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module (pass `__name__`)."""
    return logging.getLogger(name)
