"""
Logging Configuration
Sets up the 'bonsaisim' logger for command-line runs and tests.
"""
import logging
import sys
from typing import Optional, Union

from bonsaisim.errors import InvalidArgumentError

LOGGER_NAME = "bonsaisim"
LEVEL_NAMES: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")


def resolve_level(level: Union[int, str]) -> int:
    """
    Turn a level name (case-insensitive) or number into a logging level.

    Raises:
        InvalidArgumentError: If `level` names no level in LEVEL_NAMES.
    """
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name not in LEVEL_NAMES:
        raise InvalidArgumentError(f"Unknown log level {level!r}, expected one of {', '.join(LEVEL_NAMES)}.")
    return logging.getLevelName(name)


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route the 'bonsaisim' namespace to stdout and, optionally, a file.

    Args:
        level: Logging level, either a number (logging.DEBUG) or a name ("debug").
        log_file: Optional path to save logs to; the file is overwritten.

    Returns:
        The configured package logger.
    """
    level = resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Calling twice in one process replaces the handlers instead of doubling them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger
