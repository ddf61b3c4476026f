"""Logging setup for the section-test CLI."""

import logging
import sys

PROJECT_LOGGER = "section_test"
LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def setup_logging(debug: bool = False) -> logging.Logger:
    """Attach a single stderr handler to the ``section_test`` logger.

    DEBUG level in debug mode, WARNING otherwise. Calling it again replaces
    the handler instead of adding a second one.
    """
    logger = logging.getLogger(PROJECT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False
    return logger
