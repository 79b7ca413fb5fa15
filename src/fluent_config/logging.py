"""
Secret-aware logging configuration for fluent-config.

Configuration values routinely include passwords, tokens and connection
strings. The processors below make sure log events only ever carry key
names, counts and source metadata, never the values themselves.
"""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, Optional, cast

import structlog
from structlog.types import FilteringBoundLogger

REDACTED = "***"

SECRET_MARKERS = (
    "password",
    "passwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "credential",
    "connectionstring",
    "connection_string",
    "private_key",
    "accesskey",
    "access_key",
)


def is_secret_key(key: str) -> bool:
    """Return True when a configuration key name looks like it holds a secret."""
    lowered = key.lower().replace(":", "_")
    return any(marker in lowered for marker in SECRET_MARKERS)


def mask_value(key: str, value: Any) -> Any:
    return REDACTED if is_secret_key(key) else value


class SecretRedactionFilter(logging.Filter):
    """
    Filter that masks secret-looking attributes on stdlib log records.

    Records are never dropped; attributes whose names look secret have
    their value replaced.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if is_secret_key(key):
                setattr(record, key, REDACTED)
        return True


class SecretRedactionProcessor:
    """
    Structlog processor that masks secret-looking event fields.

    Field names such as ``password`` or ``connection_string`` keep their
    key but lose their value. A ``values`` field holding a mapping is
    masked entry by entry.
    """

    PASSTHROUGH_FIELDS = {"event", "timestamp", "level", "logger"}

    def __call__(
        self, logger: FilteringBoundLogger, method_name: str, event_dict: Dict[str, Any]
    ) -> Dict[str, Any]:
        redacted: Dict[str, Any] = {}
        for key, value in event_dict.items():
            if key in self.PASSTHROUGH_FIELDS:
                redacted[key] = value
            elif isinstance(value, dict):
                redacted[key] = {k: mask_value(str(k), v) for k, v in value.items()}
            else:
                redacted[key] = mask_value(key, value)
        return redacted


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    log_file: Optional[str] = None,
    redact_secrets: bool = True,
) -> None:
    """
    Set up structured logging for applications embedding fluent-config.

    The library itself never calls this; it only emits events through
    ``get_logger``.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format (json, console)
        log_file: Optional log file path
        redact_secrets: Whether to mask secret-looking fields
    """
    level = getattr(logging, log_level.upper())

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if redact_secrets:
        processors.append(SecretRedactionProcessor())

    if log_format == "json":
        processors.extend(
            [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
        )
    else:
        processors.extend([structlog.dev.ConsoleRenderer(colors=False)])

    structlog.configure(
        processors=processors,  # type: ignore[arg-type]
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if redact_secrets:
        console_handler.addFilter(SecretRedactionFilter())
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        if redact_secrets:
            file_handler.addFilter(SecretRedactionFilter())
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, format="%(message)s", force=True)


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return cast(FilteringBoundLogger, structlog.get_logger(name))
