import logging
import os
import sys

LOGGER_NAME = "CutDeck"
LOG_LEVEL_ENV = "CUTDECK_LOG_LEVEL"


def setup_logger(level=None):
    """
    Configure the shared CutDeck logger.

    The level comes from the argument, then from the CUTDECK_LOG_LEVEL
    environment variable, then defaults to DEBUG.
    """
    logger = logging.getLogger(LOGGER_NAME)
    level_name = level or os.environ.get(LOG_LEVEL_ENV, "DEBUG")
    logger.setLevel(getattr(logging, str(level_name).upper(), logging.DEBUG))

    if not logger.handlers:
        # Console handler shares the logger's level
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        logger.addHandler(handler)

    return logger


def get_logger(component=None):
    """Return the CutDeck logger or one of its children (e.g. 'store')."""
    if component:
        return logging.getLogger(f"{LOGGER_NAME}.{component}")
    return logging.getLogger(LOGGER_NAME)


logger = setup_logger()
