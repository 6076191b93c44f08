"""Log utilities."""

import logging
from rich.logging import RichHandler


def get_logger(name: str) -> logging.Logger:
    """Retrieve logger with the provided name."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers = [RichHandler()]
    logger.propagate = False
    return logger


def short_id(identifier: str, length: int = 8) -> str:
    """Shorten an identifier so it can be written into logs."""
    if len(identifier) <= length:
        return identifier
    return identifier[:length]
