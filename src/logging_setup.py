import logging
import os
from logging.handlers import RotatingFileHandler

from config_loader import get_output_dir

LOGGER_NAME = 'FocusFinder'
LOG_FILE_NAME = 'focus_finder.log'


def setup_logger(log_dir: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """Attach a rotating file handler to the FocusFinder logger (once).

    Component loggers (FocusFinder.session, FocusFinder.scheduler, ...) propagate here.
    """
    log_dir = log_dir or os.path.join(get_output_dir(), 'logs')
    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        handler = RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE_NAME),
            maxBytes=1_000_000,
            backupCount=3,
            encoding='utf-8',
        )
        fmt = logging.Formatter('%(asctime)s | %(levelname)s | %(message)s')
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    return logger
