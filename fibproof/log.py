import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logger(level=None, stream=None):
    """Configure the ``fibproof`` logger for command line and service use.

    Components never call this themselves; they take an injected logger and
    fall back to ``logging.getLogger(__name__)``.
    """
    if level is None:
        level = os.environ.get("FIBPROOF_LOG", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("fibproof")
    for handler in list(logger.handlers):
        if getattr(handler, "_fibproof", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._fibproof = True
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
