"""Logging configuration for the Head Office Locator."""

import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any, Optional


LOGGER_NAME = 'headoffice'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config: Dict[str, Any]) -> logging.Logger:
    """Set up logging based on configuration.

    Args:
        config: Logging configuration with optional 'level', 'format' and
            'file' keys. A falsy 'file' disables the rotating file handler.

    Returns:
        Configured logger instance
    """
    log_level = getattr(logging, str(config.get('level') or 'INFO').upper(), logging.INFO)
    log_format = config.get('format') or DEFAULT_FORMAT
    log_file = config.get('file')

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Prevent propagation to avoid duplicate logs
    logger.propagate = False

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Dotted name below 'headoffice' (defaults to the root 'headoffice' logger)

    Returns:
        Logger instance
    """
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
