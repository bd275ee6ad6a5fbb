"""Tests for rate limit detection."""

import httpx
import pytest

from chatbot.utils.rate_limit import is_rate_limit_error, retry_after_seconds


def http_error(status: int, headers: dict = None) -> Exception:
    """Build an exception carrying an HTTP response, like provider SDKs do."""
    request = httpx.Request("POST", "https://api.example.com/v1/chat")
    error = Exception(f"HTTP {status}")
    error.response = httpx.Response(status, headers=headers, request=request)
    return error


class StatusError(Exception):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class TestIsRateLimitError:
    """Tests for is_rate_limit_error."""

    @pytest.mark.parametrize(
        "message",
        [
            "Error code: 429",
            "HTTP status 429 returned by upstream",
            "Rate limit reached for gpt-4o-mini",
            "rate_limit_exceeded",
            "Too Many Requests",
            "You exceeded your current quota",
            "RESOURCE_EXHAUSTED",
            "Resource exhausted: please retry later",
        ],
    )
    def test_detects_message_markers(self, message):
        assert is_rate_limit_error(RuntimeError(message))

    def test_detects_status_code_attribute(self):
        assert is_rate_limit_error(StatusError("slow down", 429))

    def test_detects_response_status(self):
        assert is_rate_limit_error(http_error(429))

    @pytest.mark.parametrize(
        "error",
        [
            RuntimeError("connection reset by peer"),
            RuntimeError("connection refused on localhost:4290"),
            RuntimeError("request req_8429af failed validation"),
            ValueError("invalid request"),
            StatusError("server error", 500),
        ],
    )
    def test_other_errors(self, error):
        assert not is_rate_limit_error(error)


class TestRetryAfterSeconds:
    """Tests for retry_after_seconds."""

    def test_default_when_no_hint(self):
        assert retry_after_seconds(RuntimeError("quota"), default=60) == 60

    def test_retry_after_attribute(self):
        error = RuntimeError("quota")
        error.retry_after = 17
        assert retry_after_seconds(error, default=60) == 17

    def test_retry_after_header(self):
        error = http_error(429, headers={"Retry-After": "12"})
        assert retry_after_seconds(error, default=60) == 12

    def test_fractional_header_rounds_up(self):
        error = http_error(429, headers={"retry-after": "1.5"})
        assert retry_after_seconds(error, default=60) == 2

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_unusable_header_falls_back(self, value):
        error = http_error(429, headers={"Retry-After": value})
        assert retry_after_seconds(error, default=60) == 60
