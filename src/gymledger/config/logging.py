"""Logging configuration utilities."""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path

from gymledger.config.types import LoggingConfig


# Third-party loggers that are too chatty at INFO
QUIET_LIBRARIES = ('urllib3', 'requests', 'yaml')


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, include_timestamp: bool = True):
        """Initialize formatter.

        Args:
            include_timestamp: Whether to include timestamp in output
        """
        self.include_timestamp = include_timestamp
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data = {
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        if self.include_timestamp:
            data['timestamp'] = datetime.fromtimestamp(record.created).isoformat()

        if record.exc_info:
            data['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            data.update(record.extra_fields)

        return json.dumps(data, default=str)

class ColoredFormatter(logging.Formatter):
    """Formatter that adds color to console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with color."""
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S,%f')[:-3]
        msg = record.getMessage()

        if record.exc_info:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"

        return f"{color}{timestamp} - {record.name} - {record.levelname} - {msg}{self.RESET}"

def get_file_handler(
    log_file: str | Path,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int
) -> logging.handlers.RotatingFileHandler:
    """Create rotating file handler.

    Args:
        log_file: Path to log file
        formatter: Formatter to use
        max_bytes: Maximum file size in bytes
        backup_count: Number of backup files to keep

    Returns:
        Configured file handler
    """
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count
    )
    file_handler.setFormatter(formatter)
    return file_handler

def setup_logging(
    config: LoggingConfig | None = None,
    verbose: bool = False,
    log_file: str | None = None
) -> None:
    """Set up logging configuration.

    Args:
        config: Logging section of the application config
        verbose: Force DEBUG on the console
        log_file: Log file overriding ``config.file``
    """
    config = config or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if config.json:
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(ColoredFormatter())
    root_logger.addHandler(console_handler)

    log_file = log_file or config.file
    if log_file:
        file_handler = get_file_handler(
            log_file,
            JsonFormatter() if config.json else logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ),
            config.max_size_mb * 1024 * 1024,
            config.backup_count
        )
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)
        # File gets everything the handlers allow
        root_logger.setLevel(logging.DEBUG)

    for library in QUIET_LIBRARIES:
        logging.getLogger(library).setLevel(logging.WARNING)
