"""
Error message sanitization for API responses.

Internal errors are logged in full server-side; clients get a message with
paths, SQL fragments and module names removed.
"""

from __future__ import annotations

import re

from dailyspark.observability.logging import get_logger

logger = get_logger(__name__)

# Patterns that might leak internals
SENSITIVE_PATTERNS = [
    r"/[^\s]+\.(py|db)",
    r"[A-Za-z]:\\[^\s]+",
    r"Traceback \(most recent call last\)",
    r"sqlite3?\.",
    r"UNIQUE constraint",
    r"no such table",
    r"no such column",
    r"json_extract",
    r"dailyspark\.[a-z_.]+",
]

GENERIC_MESSAGES = {
    400: "The request could not be processed.",
    404: "The requested user or curriculum does not exist.",
    422: "The request body is malformed.",
    500: "DailySpark hit an internal error. Try again later.",
    503: "DailySpark is temporarily unavailable.",
}

_MAX_LENGTH = 200


def sanitize_error_message(message: str, status_code: int = 500) -> str:
    """
    Return ``message`` if it is safe to show a client, else a generic one.

    Server errors (5xx) always get the generic message.
    """
    generic = GENERIC_MESSAGES.get(status_code, GENERIC_MESSAGES[500])
    if status_code >= 500 or not message:
        return generic

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, flags=re.IGNORECASE):
            logger.debug("Sanitized error message matching %s", pattern)
            return generic

    if len(message) > _MAX_LENGTH:
        return message[:_MAX_LENGTH] + "..."
    return message
