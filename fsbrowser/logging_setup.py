from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import Settings

PACKAGE_LOGGER = 'fsbrowser'
# uvicorn installs its own handlers unless run with log_config=None
SERVER_LOGGERS = ('uvicorn', 'uvicorn.error', 'uvicorn.access')

LOG_FORMAT = '%(asctime)s %(levelname)-8s [%(name)s] %(message)s'


def _level_from(config: Settings) -> int:
    level = logging.getLevelName(config.log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def _make_handler(config: Settings) -> logging.Handler:
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            log_path,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding='utf-8',
        )
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _reset(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def configure_logging(config: Settings) -> logging.Handler:
    """Route the app and uvicorn loggers through one handler built from ``config``.

    Calling it again swaps the handler, so tests and reloads never stack duplicates.
    """
    level = _level_from(config)
    handler = _make_handler(config)
    handler.setLevel(level)
    for name in (PACKAGE_LOGGER, *SERVER_LOGGERS):
        _reset(logging.getLogger(name), handler, level)
    return handler
