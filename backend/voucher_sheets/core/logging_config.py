"""
Logging configuration for the Voucher Sheets backend
Structured (JSON) or detailed console/file logging with rotation
"""
import logging
import logging.handlers
import json
import sys
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        # Sheet context attached by the sheet service
        if hasattr(record, "sheet_id"):
            log_data["sheet_id"] = record.sheet_id
        if hasattr(record, "request_id"):
            log_data["request_id"] = record.request_id

        return json.dumps(log_data)


class DetailedFormatter(logging.Formatter):
    """Detailed human-readable formatter"""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-20s | %(funcName)-15s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(
    log_dir: Optional[Path] = None,
    level: str = "INFO",
    enable_json: bool = False,
    enable_console: bool = True,
    enable_files: bool = True,
) -> logging.Logger:
    """
    Setup logging for the backend

    Args:
        log_dir: Directory to store log files (ignored when enable_files is False)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_json: Enable JSON formatted logs
        enable_console: Enable console output
        enable_files: Write rotating backend.log / backend_errors.log files
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    root_logger.handlers.clear()

    formatter: logging.Formatter = JSONFormatter() if enable_json else DetailedFormatter()

    log_file = error_file = None
    if enable_files:
        log_dir = Path(log_dir or "logs")
        log_dir.mkdir(parents=True, exist_ok=True)

        # File handler with rotation (10MB, keep 5 backups)
        log_file = log_dir / "backend.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)

        # Error file handler (only errors and above)
        error_file = log_dir / "backend_errors.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=10,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)

        root_logger.addHandler(file_handler)
        root_logger.addHandler(error_handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(formatter if enable_json else DetailedFormatter())
        root_logger.addHandler(console_handler)

    logger = logging.getLogger("voucher_sheets")

    logger.info(f"Logging configured - Level: {level}, JSON: {enable_json}")
    if log_file:
        logger.info(f"Log files: {log_file}, {error_file}")

    return logger
