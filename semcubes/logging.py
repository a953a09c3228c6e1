"""Logging utilities."""

from logging import FileHandler, Formatter, StreamHandler, getLogger

__all__ = ["get_logger", "create_logger"]

DEFAULT_LOGGER_NAME = "semcubes"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(message)s"

logger = None


def get_logger(path=None):
    """Get the library logger. The logger is created on first call."""
    global logger

    if logger:
        return logger

    logger = create_logger(path=path)
    return logger


def create_logger(level=None, path=None):
    """Create a default logger. If `path` is specified, the log is written
    into that file instead of the standard error stream."""
    new_logger = getLogger(DEFAULT_LOGGER_NAME)

    if level:
        new_logger.setLevel(level.upper() if isinstance(level, str) else level)

    formatter = Formatter(fmt=DEFAULT_FORMAT)

    if path:
        handler = FileHandler(path)
    else:
        handler = StreamHandler()

    handler.setFormatter(formatter)

    # Do not stack handlers when the logger is re-created
    for old in list(new_logger.handlers):
        new_logger.removeHandler(old)
    new_logger.addHandler(handler)

    return new_logger
