"""
Structured logging configuration for the payments service.
"""

import os
import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
import structlog

REDACTED = "[redacted]"
SECRET_FIELDS = frozenset({
    "api_key",
    "authorization",
    "auth_token",
    "stripe_signature",
    "webhook_secret",
})


def redact_secrets(logger, method_name, event_dict):
    """Blank out credential-bearing fields, including inside ``extra``."""
    for container in (event_dict, event_dict.get("extra")):
        if isinstance(container, dict):
            for key in SECRET_FIELDS.intersection(container):
                container[key] = REDACTED
    return event_dict


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_json: Optional[bool] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to a rotating log file (optional)
        enable_json: Render JSON lines instead of the console format
    """
    log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_file = log_file or os.getenv("LOG_FILE_PATH")
    if enable_json is None:
        enable_json = os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes")
    level = getattr(logging, log_level, logging.INFO)

    handlers: list = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=int(os.getenv("LOG_MAX_BYTES", 10485760)),  # 10MB
                backupCount=int(os.getenv("LOG_BACKUP_COUNT", 5)),
            )
        )

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(level)
    formatter = logging.Formatter("%(message)s")
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    processors = [
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if enable_json:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name)


if not structlog.is_configured():
    setup_logging()
