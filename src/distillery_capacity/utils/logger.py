# utils/logger.py
import logging
from pathlib import Path

from distillery_capacity.utils.config import config

LOG_LEVEL = config.log_level.upper()
LOG_FILE = config.log_file

# Create formatter
formatter = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

# File handler (only when LOG_FILE is configured)
file_handler = None
if LOG_FILE:
    Path(LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    file_handler.setLevel(LOG_LEVEL)
    file_handler.setFormatter(formatter)

# Console handler
console_handler = logging.StreamHandler()
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(formatter)


def get_logger(name: str = "distillery_capacity") -> logging.Logger:
    """Return a configured logger instance."""
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)

    # Avoid duplicate handlers if called multiple times
    if not logger.handlers:
        if file_handler is not None:
            logger.addHandler(file_handler)
        logger.addHandler(console_handler)

    return logger
