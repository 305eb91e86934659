"""Logging configuration for Music Stream Monitor."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

import coloredlogs

if TYPE_CHECKING:
    from ..config.settings import LoggingConfig

LOGGER_NAME = "music_stream_monitor"

FILE_FORMAT = '%(asctime)s - %(threadName)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def _file_handler(config: 'LoggingConfig') -> logging.Handler:
    config.path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        config.path,
        maxBytes=config.max_size_mb * 1024 * 1024,
        backupCount=config.backup_count,
        encoding='utf-8'
    )
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(coloredlogs.ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    return handler


def setup_logger(
    config: 'LoggingConfig',
    console: bool = True,
    name: str = LOGGER_NAME
) -> logging.Logger:
    """Configure the monitor's logger from the logging settings.

    Handlers from an earlier call are closed and replaced, so calling this
    again (e.g. after a config change) does not duplicate output.

    Args:
        config: Logging section of the settings (level, file path, rotation)
        console: Whether to also log to stdout with colors
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(config.level)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    if config.file_enabled and config.path:
        logger.addHandler(_file_handler(config))

    if console:
        logger.addHandler(_console_handler())

    return logger
