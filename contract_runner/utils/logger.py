import logging
import os
import sys
from datetime import datetime
from typing import Optional

LOG_DIR_ENV = "CONTRACT_RUNNER_LOG_DIR"


def get_logger(name: str, level: int = logging.INFO, log_dir: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance with the specified name and log level.

    Args:
        name: The name of the logger (typically __name__)
        level: The logging level (default: INFO)
        log_dir: Directory for a daily log file; falls back to the
            CONTRACT_RUNNER_LOG_DIR environment variable, console only if unset

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers if they already exist
    if logger.handlers:
        return logger

    logger.setLevel(level)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Console output goes to stderr so the line report owns stdout
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_dir = log_dir or os.getenv(LOG_DIR_ENV)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d")
        log_file = os.path.join(log_dir, f"contract_test_{timestamp}.log")
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def set_level(logger: logging.Logger, level: int) -> None:
    """Change the level of a logger and all of its handlers"""
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
