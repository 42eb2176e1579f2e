"""
Logging setup for the extractor and its worker processes.

stdout carries extracted URLs, so console logging always goes to stderr.
"""

import logging
import sys
from pathlib import Path

from .config import Config

LOG_FORMAT = '%(asctime)s [%(levelname)s] [%(name)s] %(message)s'


def _level(config: Config) -> int:
    return logging.DEBUG if config.verbose else logging.INFO


def setup_logging(config: Config) -> logging.Logger:
    """Configure logging with console (stderr) and optional file output"""
    logger = logging.getLogger()
    logger.setLevel(_level(config))

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(_level(config))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_level(config))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logging.getLogger("pipeline_externallinks")


def get_worker_logger(worker_id: int, config: Config) -> logging.Logger:
    """Creates a dedicated logger for a worker process"""
    logger = logging.getLogger(f"Worker-{worker_id}")

    if logger.hasHandlers():
        # Forked workers inherit the parent's root handlers
        return logger

    # Spawned workers start with an unconfigured root logger
    formatter = logging.Formatter(LOG_FORMAT)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    logger.setLevel(_level(config))
    logger.propagate = False
    return logger
