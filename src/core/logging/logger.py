import logging
import sys


LOG_FORMAT = "%(asctime)s | %(levelname).1s | %(name)-30.30s | %(message)s"


def setup_logging(level: int = logging.INFO):
    """Configures the root logger with a single stdout handler."""
    logger = logging.getLogger()
    logger.setLevel(level)

    while logger.hasHandlers():
        logger.removeHandler(logger.handlers[0])

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
