"""Structured logging setup using structlog.

Log events never carry raw image payloads or credentials: binary values are
replaced by their length, long base64-looking strings by a placeholder, and
credential-like keys by ``[redacted]``.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import structlog

from src.core.config import get_settings


_CONFIGURED = False

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "google_api_key",
        "x-goog-api-key",
        "x_goog_api_key",
        "authorization",
        "credential",
        "secret",
        "token",
    }
)
_BASE64_BLOB = re.compile(r"^[A-Za-z0-9+/=_-]{256,}$")


def _add_default_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    del logger, method_name
    event_dict.setdefault("request_id", None)
    return event_dict


def _scrub(key: str, value: Any) -> Any:
    if key.lower() in SENSITIVE_KEYS:
        return REDACTED
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<{len(value)} bytes>"
    if isinstance(value, str) and _BASE64_BLOB.match(value):
        return f"<{len(value)} chars base64>"
    if isinstance(value, dict):
        return {str(k): _scrub(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(key, item) for item in value]
    return value


def redact_sensitive_values(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    del logger, method_name
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        event_dict[key] = _scrub(key, value)
    return event_dict


def build_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        _add_default_context,
        redact_sensitive_values,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.JSONRenderer(),
    ]


def configure_logging() -> None:
    """Initialize structlog once for JSON-formatted logs."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(level=level, format="%(message)s")

    structlog.configure(
        processors=build_processors(),
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


def bind_request_context(request_id: str) -> None:
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
