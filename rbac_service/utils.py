"""
Shared helpers.
"""
import logging
import os


LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format=LOG_FORMAT,
)


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Usage:
        log = get_logger(__name__)
        log.info("Something happened")
    """
    return logging.getLogger(name)
