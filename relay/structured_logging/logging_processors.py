"""
Logging processors for structlog event processing.

This module provides processors for redacting sensitive data and adding
correlation IDs to every log entry.
"""

import re
import uuid
from typing import Any

# Field names are matched case-insensitively
_SENSITIVE_PATTERNS = [
    re.compile(pattern)
    for pattern in (
        r"\bpassword\b",
        r"\btoken\b",
        r"\bsecret\b",
        r"_key\b",
        r"^key$",
        r"\bcredential\b",
        r"\bauthorization\b",
        r"\bcookie\b",
    )
]


def _sanitize_dict(d: dict[str, Any]) -> dict[str, Any]:
    sanitized: dict[str, Any] = {}
    for key, value in d.items():
        if isinstance(value, dict):
            sanitized[key] = _sanitize_dict(value)
        elif any(pattern.search(str(key).lower()) for pattern in _SENSITIVE_PATTERNS):
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = value
    return sanitized


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Redacts values whose field names look like passwords, tokens or
    credentials, recursing into nested dictionaries.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """
    return _sanitize_dict(event_dict)


def add_correlation_id(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Add a correlation ID to log entries if not already present.

    Entries emitted inside a bound request context already carry one via
    merge_contextvars; this covers background work outside any request.
    """
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = str(uuid.uuid4())
    return event_dict
