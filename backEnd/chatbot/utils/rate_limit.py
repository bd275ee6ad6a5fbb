"""
Rate limit detection for LLM provider errors.

Provider SDKs disagree on how a quota or rate limit is reported, so
detection looks at the status code first and falls back to the
error text.
"""

import logging
import math
from typing import Optional

logger = logging.getLogger(__name__)


RATE_LIMIT_MARKERS = (
    "error code: 429",
    "status 429",
    "status code 429",
    "rate limit",
    "rate_limit",
    "too many requests",
    "quota",
    "resource exhausted",
    "resource_exhausted",
)


def _status_code(error: Exception) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(getattr(error, "response", None), "status_code", None)
    return status if isinstance(status, int) else None


def is_rate_limit_error(error: Exception) -> bool:
    """Check if an exception is a rate limit or quota error (429)."""
    if _status_code(error) == 429:
        return True
    error_str = str(error).lower()
    return any(marker in error_str for marker in RATE_LIMIT_MARKERS)


def _parse_seconds(value) -> Optional[int]:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if seconds <= 0 or math.isnan(seconds) or math.isinf(seconds):
        return None
    return math.ceil(seconds)


def retry_after_seconds(error: Exception, default: int) -> int:
    """
    Get the retry delay suggested by a rate limit error.

    Checks a ``retry_after`` attribute, then a ``Retry-After`` header on
    the error's HTTP response. Returns ``default`` when neither is usable.
    """
    seconds = _parse_seconds(getattr(error, "retry_after", None))
    if seconds is not None:
        return seconds

    headers = getattr(getattr(error, "response", None), "headers", None)
    if headers is not None:
        try:
            value = headers.get("retry-after") or headers.get("Retry-After")
        except AttributeError:
            value = None
        seconds = _parse_seconds(value)
        if seconds is not None:
            return seconds
        if value is not None:
            logger.debug(f"Ignoring unusable Retry-After header: {value!r}")

    return default
