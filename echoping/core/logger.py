"""
Logging configuration for EchoPing.

Progress lines go to stdout by default. When stdout carries a machine
readable summary, pass ``stream=sys.stderr`` so the two never mix.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TextIO

from .config import LoggingConfig

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _level(config: LoggingConfig) -> int:
    return getattr(logging, str(config.level).upper(), logging.INFO)


def setup_logging(config: LoggingConfig, verbose: bool = False,
                  stream: Optional[TextIO] = None) -> None:
    """Install console and optional rotating file handlers.

    The configured level applies to the root logger. ``verbose`` lowers only
    the ``echoping`` logger to DEBUG, so third-party chatter stays filtered.
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    base_level = _level(config)

    root_logger = logging.getLogger()
    root_logger.setLevel(base_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file:
        try:
            log_path = Path(config.file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=config.max_size * 1024 * 1024,  # MB to bytes
                backupCount=config.backup_count
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        except OSError as e:
            logging.warning(f"Failed to setup file logging: {e}")

    logging.getLogger('echoping').setLevel(logging.DEBUG if verbose else base_level)

    # Webhook delivery goes through requests
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(f"echoping.{name}")
