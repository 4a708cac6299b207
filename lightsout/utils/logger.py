import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from lightsout.config import Config

PACKAGE_LOGGER = "lightsout"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Library loggers whose warnings go to the league log as well
LIBRARY_LOGGERS = ("discord",)


def configure_logging(log_dir: Optional[str] = None) -> logging.Logger:
    """
    Attach console and daily-rotated file handlers to the package logger.

    Handlers are only added on the first call. Every ``lightsout.*`` module
    logger inherits them. An empty ``log_dir`` turns the file handler off.

    Args:
        log_dir: Directory for ``league_bot.log``, defaults to Config.LOG_DIR

    Returns:
        The ``lightsout`` package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if package_logger.handlers:
        return package_logger

    log_level = logging.DEBUG if Config.DEBUG else logging.INFO
    package_logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    handlers = [console_handler]

    log_dir = Config.LOG_DIR if log_dir is None else log_dir
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            path / 'league_bot.log',
            when='midnight',
            backupCount=Config.LOG_RETENTION_DAYS,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    for name in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(logging.WARNING)
        for handler in handlers:
            library_logger.addHandler(handler)

    return package_logger


def setup_logger(name: str) -> logging.Logger:
    """Module logger sharing the package handlers."""
    configure_logging()
    return logging.getLogger(name)
