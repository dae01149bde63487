"""
Logging helper for scripts and the command line.

Library modules only call logging.getLogger(__name__); handlers are
attached here, by the entry points.
"""

import logging


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Create a logger with uniform format.

    Args:
        name: logger name, usually the package or __name__ of the caller.
        level: logging level string (e.g., 'DEBUG', 'INFO').

    Returns:
        Configured logging.Logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s: %(message)s")
        )
        logger.addHandler(handler)
    return logger
