"""
Structured Logging Configuration
Centralized structlog setup with owner_id / request_id context and phone redaction
"""
from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog


class PhoneRedactionProcessor:
    """
    Structlog processor that masks phone numbers inside event values (recursively).

    Student phones are the only PII the ledger stores; keep the first two and
    the last two digits so support can still tell numbers apart.
    """
    P_PHONE = re.compile(r"(?<![\w-])\+?\d[\d\s-]{6,}\d(?![\w-])")
    P_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
    SKIP_KEYS = frozenset({"timestamp", "request_id", "amount", "remaining", "paid_total", "due_total"})

    def __call__(self, logger, method_name, event_dict):
        return {k: v if k in self.SKIP_KEYS else self._redact(v) for k, v in event_dict.items()}

    def _redact(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: self._redact(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._redact(v) for v in value]
        if isinstance(value, str):
            return self.P_PHONE.sub(self._mask, value)
        return value

    @classmethod
    def _mask(cls, m: re.Match) -> str:
        if cls.P_DATE.fullmatch(m.group(0)):
            return m.group(0)
        digits = re.sub(r"\D", "", m.group(0))
        return f"{digits[:2]}****{digits[-2:]}"


def configure_logging(log_level: str = "INFO", json_logs: bool = True, redact_pii: bool = True) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output JSON format (True for prod, False for dev)
        redact_pii: Mask phone numbers before rendering
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if redact_pii:
        processors.append(PhoneRedactionProcessor())

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("Payment created", owner_id=str(owner_id), payment_id=str(payment.id))
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables (request_id, owner_id) to all subsequent log entries."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
