"""Unit tests for confluence_client.retry_logic module."""

from unittest.mock import MagicMock, patch

import pytest

from src.confluence_client.errors import APIAccessError, PageNotFoundError
from src.confluence_client.retry_logic import (
    MAX_RETRIES,
    _is_rate_limit_error,
    as_decorator,
    retry_on_rate_limit,
)


class TestIsRateLimitError:
    """Test cases for _is_rate_limit_error."""

    @pytest.mark.parametrize("message", [
        "HTTP 429 Too Many Requests",
        "Rate limit exceeded",
        "too many requests, slow down",
    ])
    def test_detects_rate_limit_messages(self, message):
        assert _is_rate_limit_error(Exception(message)) is True

    def test_detects_status_code_attribute(self):
        error = Exception("API error")
        error.status_code = 429
        assert _is_rate_limit_error(error) is True

    def test_detects_response_status_code(self):
        """requests-style HTTPError carries the status on its response."""
        error = Exception("API error")
        error.response = MagicMock(status_code=429)
        assert _is_rate_limit_error(error) is True

    def test_other_errors_are_not_rate_limits(self):
        error = Exception("Not found")
        error.status_code = 404
        assert _is_rate_limit_error(error) is False


class TestRetryOnRateLimit:
    """Test cases for retry_on_rate_limit."""

    @patch('time.sleep')
    def test_backoff_doubles_each_retry(self, mock_sleep):
        """Waits 1s, 2s, 4s before succeeding on the last allowed attempt."""
        rate_limited = Exception("429")
        func = MagicMock(side_effect=[rate_limited, rate_limited, rate_limited, "page"])

        assert retry_on_rate_limit(func, "123", expand="body") == "page"
        assert [call.args[0] for call in mock_sleep.call_args_list] == [1, 2, 4]
        assert func.call_count == MAX_RETRIES + 1
        func.assert_called_with("123", expand="body")

    @patch('time.sleep')
    def test_gives_up_after_max_retries(self, mock_sleep):
        """A persistent rate limit becomes an APIAccessError chained to the cause."""
        rate_limited = Exception("429 Too Many Requests")
        func = MagicMock(side_effect=rate_limited)

        with pytest.raises(APIAccessError) as exc_info:
            retry_on_rate_limit(func)

        assert exc_info.value.__cause__ is rate_limited
        assert func.call_count == MAX_RETRIES + 1
        assert mock_sleep.call_count == MAX_RETRIES

    @patch('time.sleep')
    def test_other_errors_fail_fast(self, mock_sleep):
        """Errors other than rate limits are raised on the first attempt."""
        func = MagicMock(side_effect=PageNotFoundError(page_id="123"))

        with pytest.raises(PageNotFoundError):
            retry_on_rate_limit(func)

        assert func.call_count == 1
        mock_sleep.assert_not_called()


class TestAsDecorator:
    """Test cases for as_decorator."""

    @patch('time.sleep')
    def test_decorated_function_is_retried(self, mock_sleep):
        attempts = []

        @as_decorator
        def fetch_page(page_id):
            attempts.append(page_id)
            if len(attempts) < 2:
                raise Exception("rate limited")
            return {"id": page_id}

        assert fetch_page("123") == {"id": "123"}
        assert attempts == ["123", "123"]
        assert fetch_page.__name__ == "fetch_page"
