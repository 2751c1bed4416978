import logging
import sys

from unipatch.config import log_level_from_env

LOGGER_NAME = "unipatch"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: int | None = None) -> logging.Logger:
    """
    Attach a stderr handler to the package logger.

    The level defaults to UNIPATCH_LOG_LEVEL, then WARNING. Calling it again
    replaces the handler installed by the previous call. Propagation is
    disabled so host applications with their own root handler do not get
    every record twice.
    """

    logger = logging.getLogger(LOGGER_NAME)
    for existing in [h for h in logger.handlers if getattr(h, "_unipatch", False)]:
        logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._unipatch = True
    logger.addHandler(handler)
    logger.setLevel(level if level is not None else log_level_from_env())
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
