# sentinel/utils/logs.py
import logging
import os


def setup_logging(level=None):
    """Configure root logging for the CLI/API entry points."""
    if level is None:
        level = os.getenv("SENTINEL_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
