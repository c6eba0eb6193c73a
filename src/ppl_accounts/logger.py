"""Logging setup for ppl-accounts."""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "WARNING") -> None:
    """Replace loguru's default sink with a single stderr sink."""
    logger.remove()
    logger.configure(extra={"name": "ppl_accounts"})
    # Resolve sys.stderr per message so a swapped stream is picked up
    logger.add(lambda message: sys.stderr.write(message), level=level.upper(), format=LOG_FORMAT)


def get_logger(name: str):
    """Get a logger bound to a module name."""
    return logger.bind(name=name)
