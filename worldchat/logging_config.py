"""Logging configuration for World Chat."""

import logging
import sys

logger = logging.getLogger("worldchat")


def configure_logging(level: int = logging.INFO) -> None:
    """Set up logging configuration."""

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear all existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('[%(asctime)s][%(levelname)s] %(message)s'))

    root_logger.addHandler(console_handler)

    # Package loggers share the console handler without double printing
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.setLevel(level)
    logger.propagate = False

    # httpx logs every request line at INFO, which would echo backend keys in URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str = "worldchat") -> logging.Logger:
    """Get logger instance."""
    return logging.getLogger(name)
