"""structlog setup for the sign-in stack: colored console on stderr plus a JSONL file."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

from arr_auth.config import LOG_FILE, LOG_LEVEL, VERBOSE_LOGGING

BoundLogger = structlog.stdlib.BoundLogger

# Event keys whose values must never reach a log sink
SECRET_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "id_token",
        "client_secret",
        "device_code",
        "authorization",
    }
)
_REDACTED = "***"

# Third-party loggers that echo token endpoint requests at INFO
_QUIET_LOGGERS = ("msal", "azure", "azure.core", "urllib3", "requests")

_configured = False


def _level_from(value: str) -> int:
    if value.isdigit():
        return int(value)
    level = getattr(logging, value.upper(), None)
    return level if isinstance(level, int) else logging.INFO


def redact_secrets(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor replacing token-bearing values with a placeholder."""
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = _REDACTED
    return event_dict


def _handler(handler: logging.Handler, renderer: Any, level: int, pre_chain: list) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
    return handler


def configure_logging(level: str | int | None = None, log_file: Path | None = None) -> None:
    """Install the console and JSONL handlers and configure structlog. Later calls are no-ops."""
    global _configured
    if _configured:
        return

    if level is None:
        level = logging.DEBUG if VERBOSE_LOGGING else _level_from(LOG_LEVEL)
    elif isinstance(level, str):
        level = _level_from(level)
    log_file = log_file or LOG_FILE

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
    ]

    log_file.parent.mkdir(parents=True, exist_ok=True)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(_handler(logging.StreamHandler(sys.stderr), structlog.dev.ConsoleRenderer(colors=True), level, shared))
    root.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), structlog.processors.JSONRenderer(), level, shared))
    logging.captureWarnings(True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str = "arr_auth", **bindings: Any) -> BoundLogger:
    """Return a structured logger, configuring logging on first use."""
    if not _configured:
        configure_logging()
    logger = structlog.get_logger(name)
    return logger.bind(**bindings) if bindings else logger


def bind_context(**context: Any) -> None:
    """Attach key/values to every log entry on this task until cleared."""
    structlog.contextvars.bind_contextvars(**context)


def unbind_context(*keys: str) -> None:
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
