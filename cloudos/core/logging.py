# cloudos/core/logging.py
from __future__ import annotations

import logging
from typing import Any, Dict

import structlog

_REDACTED_KEYS = {"password", "secret", "token", "authorization"}


def _redact_secrets(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key in list(event_dict.keys()):
        if any(s in key.lower() for s in _REDACTED_KEYS) and isinstance(event_dict[key], str):
            value = event_dict[key]
            event_dict[key] = value[:4] + "***" if len(value) > 8 else "***"
    return event_dict


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog (and the stdlib root logger) once per process.

    JSON lines in production, coloured console output otherwise. Request ids
    bound through ``structlog.contextvars`` end up on every entry.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=log_level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_secrets,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors += [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
