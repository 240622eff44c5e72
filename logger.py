"""
logger.py - Logging configuration for the board

Usage:
    from logger import get_logger
    logger = get_logger(__name__)
    logger.info("Article %s published", article_id)
"""

import logging
import sys
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ERROR_LOG_NAME = "error.log"


def setup_logging(level="INFO", log_dir=None):
    """Install a console handler and, when log_dir is given, an error file."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_dir:
        logs_path = Path(log_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(logs_path / ERROR_LOG_NAME, encoding="utf-8")
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name=None):
    return logging.getLogger(name or "board")
