"""
Logging setup for tilebake.

Every module logs through get_logger('<module>'), which yields a child of
the 'tilebake' logger. The CLI calls setup_logging once with its -v/-d
flags; library users can leave logging unconfigured or set it up their own
way.
"""

import logging
import sys
from typing import Optional, TextIO

PACKAGE_LOGGER = 'tilebake'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Pillow logs every PNG chunk it reads at DEBUG
NOISY_LOGGERS = ('PIL',)


def log_level(verbose: bool = False, debug: bool = False) -> int:
    """Map the CLI verbosity flags to a logging level."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Route tilebake log records to a stream.

    Args:
        verbose: Show progress (INFO)
        debug: Show per-layer and per-file detail (DEBUG, implies verbose)
        stream: Destination, stdout by default

    Returns:
        The package logger
    """
    level = log_level(verbose, debug)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(stream or sys.stdout)],
        force=True
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for one tilebake module, e.g. get_logger('assembler')."""
    if name:
        return logging.getLogger(f'{PACKAGE_LOGGER}.{name}')
    return logging.getLogger(PACKAGE_LOGGER)
