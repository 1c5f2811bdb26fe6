"""structlog setup: JSON lines on stdout with credentials masked."""

import logging
import sys
from typing import Any, MutableMapping

import structlog

REDACTED = "REDACTED"

# Substrings of field names that may hold a credential (password, password_hash,
# access_token, refreshToken, access_token_secret, Authorization, Cookie, ...)
SENSITIVE_KEYS = ("authorization", "cookie", "password", "secret", "token")

# The event name describes what happened, never carries a value
_PASSTHROUGH_KEYS = frozenset({"event"})


def is_sensitive_key(key: str) -> bool:
    if key in _PASSTHROUGH_KEYS:
        return False
    lowered = key.lower()
    return any(fragment in lowered for fragment in SENSITIVE_KEYS)


def redact_sensitive(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor replacing credential-bearing values with REDACTED.

    Event names such as ``refresh_token_rotated`` are kept as they are.
    """
    for key in [k for k in event_dict if is_sensitive_key(k)]:
        event_dict[key] = REDACTED
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog to stdout as JSON, filtered at ``log_level``.

    Per-request context (correlation_id, admin_id) is merged in from
    contextvars bound by the middleware and auth dependency.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger bound with ``logger_name`` when a name is given."""
    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger
