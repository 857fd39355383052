"""
Logging Configuration
Console and optional file output for the 'nnbind' logger hierarchy.
"""
import logging
import sys
from typing import List, Optional, Union

from nnbind import config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown logging level {level!r}")
    return resolved


def setup_logging(level: Optional[Union[int, str]] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route nnbind log records to stdout and, optionally, to ``log_file``.

    Handlers attached by an earlier call are closed and replaced.

    Args:
        level: A logging level or its name ("DEBUG", "info", ...). Defaults
            to ``config.LOG_LEVEL``.
        log_file: Path of a log file, truncated on open.
    """
    level = _resolve_level(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    logger = logging.getLogger("nnbind")
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging initialized at %s", logging.getLevelName(level))
    return logger
