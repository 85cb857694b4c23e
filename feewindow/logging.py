"""Centralized logging configuration for feewindow."""

import logging
import logging.handlers
from pathlib import Path
from typing import Any, Dict

from .constants import DEFAULT_LOG_MAX_BYTES, DEFAULT_LOG_BACKUP_COUNT

FILE_FORMAT = '%(asctime)s [%(levelname)-8s] [%(name)s] %(message)s'
CONSOLE_FORMAT = '[%(levelname)-8s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _main_file_handler(path: Path, archive_dir: Path, rotation: Dict[str, Any]) -> logging.Handler:
    """Rotate the main log at midnight into archive/, or by size."""
    if rotation.get("when") == "midnight":
        handler = logging.handlers.TimedRotatingFileHandler(
            path,
            when="midnight",
            interval=1,
            backupCount=rotation.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
            encoding="utf-8"
        )
        handler.namer = lambda name: str(archive_dir / Path(name).name)
        return handler
    return logging.handlers.RotatingFileHandler(
        path,
        maxBytes=rotation.get("max_bytes", DEFAULT_LOG_MAX_BYTES),
        backupCount=rotation.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
        encoding="utf-8"
    )


def setup_logging(config) -> None:
    """
    Initialize logging system based on configuration.

    Installs a rotating main log (feewindow.log), an error-only log
    (feewindow-error.log) and a console handler on the root logger.

    Args:
        config: Configuration instance with logging settings
    """
    log_dir_path = Path(config.log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)
    archive_dir = log_dir_path / "archive"
    archive_dir.mkdir(exist_ok=True)

    file_level = getattr(logging, config.log_level.upper(), logging.INFO)
    console_level = getattr(logging, config.console_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(file_level, console_level))
    root_logger.handlers.clear()

    rotation = config.log_rotation
    file_formatter = logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT)

    file_handler = _main_file_handler(log_dir_path / "feewindow.log", archive_dir, rotation)
    file_handler.setLevel(file_level)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    error_handler = logging.handlers.RotatingFileHandler(
        log_dir_path / "feewindow-error.log",
        maxBytes=rotation.get("max_bytes", DEFAULT_LOG_MAX_BYTES),
        backupCount=rotation.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
        encoding="utf-8"
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(file_formatter)
    root_logger.addHandler(error_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific component.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
