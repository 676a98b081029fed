"""
Logging configuration for the application.

``setup_logging`` attaches a console handler to the root logger the first
time it is called; later calls (repeated app construction in tests) are
no-ops.
"""

import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure root logger once with the given level name."""
    logger = logging.getLogger()
    if logger.handlers:
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
