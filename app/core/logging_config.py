"""
Logging setup
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from app.core.config import Settings

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the ``app`` logger.
    Console output always, plus a rotating file when LOG_FILE is set.
    """
    logger = logging.getLogger("app")
    logger.setLevel(settings.LOG_LEVEL.upper())

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.LOG_FILE,
            maxBytes=settings.LOG_MAX_SIZE,
            backupCount=settings.LOG_BACKUP_COUNT
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
