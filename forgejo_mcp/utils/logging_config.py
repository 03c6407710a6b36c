"""Logging configuration for the MCP server."""

import logging
from typing import Optional

from .. import config


# Log level constants
DEFAULT_LOG_LEVEL = logging.INFO
DEBUG_LOG_LEVEL = logging.DEBUG

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def setup_logging(log_level: Optional[int] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the MCP server.

    The server speaks JSON-RPC over stdio, so log records never go to
    stdout or stderr: they are written to a file or dropped.

    Args:
        log_level: Logging level; defaults to DEBUG when FORGEJO_MCP_DEBUG is set, else INFO
        log_file: Log file path; defaults to FORGEJO_MCP_LOG_FILE. Without one, logs are dropped.
    """
    if log_level is None:
        log_level = DEBUG_LOG_LEVEL if config.DEBUG else DEFAULT_LOG_LEVEL
    if log_file is None:
        log_file = config.LOG_FILE

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(logging.NullHandler())

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
        except OSError:
            # Stderr is off limits; carry on without the file handler
            file_handler = None
        if file_handler is not None:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
            root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; handlers are configured once by setup_logging."""
    return logging.getLogger(name)
