"""
StageVault - Structured Logging

Vault modules log through ``logging.getLogger(__name__)`` and attach an
``extra={"event": "<component>.<action>", ...}`` payload. This module
decides where those records go: JSON lines on stderr and, optionally, a
size-rotated JSON log file.

Usage:
    from stagevault.core.logging_config import setup_logging

    setup_logging(name="stagevault", log_file="/var/log/stagevault/vault.json")
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

DEFAULT_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps each record with deployment context."""

    def __init__(
        self,
        fmt: str = DEFAULT_FORMAT,
        timestamp: bool = True,
        environment: Optional[str] = None,
        service_name: str = "stagevault",
    ):
        super().__init__(fmt=fmt)
        self.timestamp = timestamp
        self.environment = environment or "production"
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if self.timestamp and not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = log_record.get("level") or record.levelname.lower()
        log_record.update(
            environment=self.environment,
            service=self.service_name,
            source={"module": record.module, "function": record.funcName, "line": record.lineno},
        )


def _file_handler(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)


def setup_logging(
    name: str = "stagevault",
    log_file: Optional[str] = None,
    level: str = "INFO",
    environment: str = "production",
    enable_console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure JSON logging for ``name`` and every logger below it.

    Calling this again replaces the handlers installed by the previous
    call. A log file that cannot be opened is reported and skipped.

    Args:
        name: Logger to configure ("stagevault" covers the whole package)
        log_file: Optional rotating JSON log file
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        environment: Value of the ``environment`` field in every record
        enable_console: Emit to stderr
        max_bytes: Rotation threshold for the log file
        backup_count: Rotated files to keep

    Returns:
        The configured logger

    Raises:
        ValueError: If ``level`` is not one of LOG_LEVELS
    """
    if level.upper() not in LOG_LEVELS:
        raise ValueError(f"unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}")
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = CustomJsonFormatter(environment=environment, service_name=name.split(".")[0])
    handlers = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        try:
            handlers.append(_file_handler(log_file, max_bytes, backup_count))
        except OSError as exc:
            logger.warning("Log file %s unavailable: %s", log_file, exc)

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger(name: str, log_file: Optional[str] = None, level: str = "INFO") -> logging.Logger:
    """Return ``name``'s logger, configuring it first if it has no handlers."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    return setup_logging(name=name, log_file=log_file, level=level)
