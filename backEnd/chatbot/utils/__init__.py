"""Utility functions for the handbook chatbot."""

from .rate_limit import is_rate_limit_error, retry_after_seconds

__all__ = [
    "is_rate_limit_error",
    "retry_after_seconds",
]
