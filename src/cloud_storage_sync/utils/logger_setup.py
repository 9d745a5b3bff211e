import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_DIR_DEFAULT = Path("logs")
LOG_FILE_MAX_BYTES_DEFAULT = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT_DEFAULT = 5
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s.%(funcName)s:%(lineno)d] - %(message)s"


def setup_logging(
    logger_name: str = "cloud_storage_sync",
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = LOG_DIR_DEFAULT,
    log_file_max_bytes: int = LOG_FILE_MAX_BYTES_DEFAULT,
    log_file_backup_count: int = LOG_FILE_BACKUP_COUNT_DEFAULT,
    console_output: bool = True
) -> logging.Logger:
    """
    Configures and returns a logger instance.

    The default name is the package root, so every module logger created with
    logging.getLogger(__name__) inside the package propagates to these handlers.

    Args:
        logger_name: The name for the logger.
        log_level: The minimum log level to capture (e.g., logging.INFO, logging.DEBUG).
        log_dir: The directory to store log files. None disables the file handler.
        log_file_max_bytes: Maximum size of a log file before rotation.
        log_file_backup_count: Number of backup log files to keep.
        console_output: Whether to output logs to the console (stderr).

    Returns:
        A configured logger instance.
    """
    logger = logging.getLogger(logger_name)

    # Repeated calls (tests, CLI re-entry) only adjust the level
    if logger.hasHandlers() and logger.handlers:
        logger.setLevel(log_level)
        return logger

    logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    if console_output:
        # stderr keeps stdout free for command output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        sanitized_logger_name = "".join(c if c.isalnum() or c in ['_', '-'] else '_' for c in logger_name)
        log_file_path = log_dir / f"{sanitized_logger_name}.log"

        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=log_file_max_bytes,
            backupCount=log_file_backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
