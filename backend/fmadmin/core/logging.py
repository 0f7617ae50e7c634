"""Logging setup shared by every entry point that embeds the sync client."""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from fmadmin.core.config import settings, PROJECT_ROOT

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_HANDLER_NAME = "fmadmin.console"
FILE_HANDLER_NAME = "fmadmin.file"


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root logger with a console handler and optional rotating file.

    Args:
        level: Log level name (defaults to settings.LOG_LEVEL)
        log_file: Log file path, relative paths resolve against the project root
            (defaults to settings.LOG_FILE; no file handler when unset)

    Returns:
        The configured root logger
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level_name)
    installed = {h.name for h in root_logger.handlers}

    # Console handler (for development)
    if CONSOLE_HANDLER_NAME not in installed:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.set_name(CONSOLE_HANDLER_NAME)
        root_logger.addHandler(console_handler)

    log_file = log_file or settings.LOG_FILE
    if log_file and FILE_HANDLER_NAME not in installed:
        log_path = Path(log_file).expanduser()
        if not log_path.is_absolute():
            log_path = PROJECT_ROOT / log_path
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # File handler with rotation
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.set_name(FILE_HANDLER_NAME)
        root_logger.addHandler(file_handler)
        root_logger.info(f"Logging configured. Log file: {log_path}")

    # httpx logs every request at INFO, including URLs that carry session tokens
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("fmadmin.services.filemaker").setLevel(level_name)

    return root_logger
