"""Unit tests for the retry executor."""

from unittest.mock import MagicMock, patch

import pytest

from basecamp_fetch.fetch.cancellation import CancellationToken
from basecamp_fetch.fetch.errors import (
    OperationCancelledError,
    RetriesExhaustedError,
    TransientFetchError,
)
from basecamp_fetch.fetch.metrics import FetchMetrics
from basecamp_fetch.fetch.models import FetchErrorClass
from basecamp_fetch.fetch.retry import with_retries
from tests.helpers.sleep import RecordingSleep


class TestWithRetriesSuccess:
    """Tests for operations that eventually succeed."""

    def setup_method(self) -> None:
        """Reset metrics before each test."""
        FetchMetrics.reset()

    def test_returns_value_on_first_attempt(self) -> None:
        """Test that a successful operation runs once without sleeping."""
        operation = MagicMock(return_value="ok")
        sleep = RecordingSleep()

        result = with_retries(operation, sleep=sleep)

        assert result == "ok"
        assert operation.call_count == 1
        assert sleep.calls == []

    def test_returns_value_after_failures(self) -> None:
        """Test that the value of the first successful attempt is returned."""
        operation = MagicMock(
            side_effect=[RuntimeError("boom"), RuntimeError("boom"), {"id": 1}]
        )
        sleep = RecordingSleep()

        result = with_retries(operation, max_attempts=5, sleep=sleep)

        assert result == {"id": 1}
        assert operation.call_count == 3
        # 2s after the first failure, 4s after the second
        assert sleep.total == 6
        assert FetchMetrics.get_instance().http_retry_total == 2

    def test_calls_are_independent(self) -> None:
        """Test that each call starts with a fresh attempt counter."""
        sleep = RecordingSleep()

        for _ in range(3):
            operation = MagicMock(side_effect=[RuntimeError("once"), "ok"])
            assert with_retries(operation, max_attempts=2, sleep=sleep) == "ok"

        assert sleep.total == 6


class TestWithRetriesExhaustion:
    """Tests for operations that always fail."""

    @pytest.mark.parametrize("max_attempts", [1, 2, 3, 5])
    def test_invokes_exactly_max_attempts(self, max_attempts: int) -> None:
        """Test that an always-failing operation runs max_attempts times."""
        operation = MagicMock(side_effect=RuntimeError("down"))

        with pytest.raises(RetriesExhaustedError):
            with_retries(operation, max_attempts=max_attempts, sleep=RecordingSleep())

        assert operation.call_count == max_attempts

    def test_backoff_delays_double(self) -> None:
        """Test that n attempts produce n-1 sleeps of 2, 4, ..., 2^(n-1)."""
        operation = MagicMock(side_effect=RuntimeError("down"))

        with (
            patch("basecamp_fetch.fetch.retry.cancellable_sleep") as mock_sleep,
            pytest.raises(RetriesExhaustedError),
        ):
            with_retries(operation, max_attempts=5)

        delays = [call.args[0] for call in mock_sleep.call_args_list]
        assert delays == [2, 4, 8, 16]

    def test_sleeps_in_one_second_slices(self) -> None:
        """Test that backoff is slept one second at a time."""
        operation = MagicMock(side_effect=RuntimeError("down"))
        sleep = RecordingSleep()

        with pytest.raises(RetriesExhaustedError):
            with_retries(operation, max_attempts=3, sleep=sleep)

        assert sleep.calls == [1.0] * 6

    def test_wraps_original_error(self) -> None:
        """Test that the final error carries attempt count and cause."""
        original = TransientFetchError(
            FetchErrorClass.HTTP_5XX, "Server error (503)", status_code=503
        )
        operation = MagicMock(side_effect=original)

        with pytest.raises(RetriesExhaustedError) as exc_info:
            with_retries(operation, max_attempts=2, sleep=RecordingSleep())

        error = exc_info.value
        assert error.attempts == 2
        assert error.last_error is original
        assert error.__cause__ is original
        assert error.status_code == 503
        assert "Server error (503)" in str(error)

    def test_custom_backoff_base(self) -> None:
        """Test that the backoff base is configurable."""
        operation = MagicMock(side_effect=RuntimeError("down"))

        with (
            patch("basecamp_fetch.fetch.retry.cancellable_sleep") as mock_sleep,
            pytest.raises(RetriesExhaustedError),
        ):
            with_retries(operation, max_attempts=3, backoff_base=3)

        delays = [call.args[0] for call in mock_sleep.call_args_list]
        assert delays == [3, 9]

    def test_rejects_zero_attempts(self) -> None:
        """Test that max_attempts below 1 is rejected."""
        with pytest.raises(ValueError, match="max_attempts"):
            with_retries(MagicMock(), max_attempts=0)


class TestWithRetriesCancellation:
    """Tests for cooperative cancellation."""

    def test_cancelled_before_first_attempt(self) -> None:
        """Test that a cancelled token prevents any invocation."""
        token = CancellationToken()
        token.cancel()
        operation = MagicMock(return_value="ok")

        with pytest.raises(OperationCancelledError):
            with_retries(operation, token=token, sleep=RecordingSleep())

        operation.assert_not_called()

    def test_cancelled_during_backoff(self) -> None:
        """Test that cancellation mid-sleep abandons remaining retries."""
        token = CancellationToken()
        sleep = RecordingSleep(cancel_after=1, token=token)
        operation = MagicMock(side_effect=RuntimeError("down"))

        with pytest.raises(OperationCancelledError, match="retry #1"):
            with_retries(operation, max_attempts=5, token=token, sleep=sleep)

        assert operation.call_count == 1
        # Only one of the two seconds of backoff was slept
        assert sleep.calls == [1.0]

    def test_cancelled_between_attempts(self) -> None:
        """Test that a token set by the operation stops the next attempt."""
        token = CancellationToken()

        def operation() -> str:
            token.cancel()
            raise RuntimeError("down")

        sleep = RecordingSleep()

        with pytest.raises(OperationCancelledError, match="after attempt #1"):
            with_retries(operation, max_attempts=5, token=token, sleep=sleep)

        assert sleep.calls == []

    def test_cancelled_during_last_attempt(self) -> None:
        """Test that cancellation wins over exhaustion on the final attempt."""
        token = CancellationToken()
        operation = MagicMock(
            side_effect=[RuntimeError("down"), RuntimeError("boom")]
        )

        def cancel_on_second_call() -> str:
            if operation.call_count == 1:
                token.cancel()
            return operation()

        with pytest.raises(OperationCancelledError) as exc_info:
            with_retries(
                cancel_on_second_call,
                max_attempts=2,
                token=token,
                sleep=RecordingSleep(),
            )

        assert not isinstance(exc_info.value, RetriesExhaustedError)
        assert operation.call_count == 2

    def test_cancellation_from_operation_not_retried(self) -> None:
        """Test that a cancellation raised inside the operation propagates."""
        operation = MagicMock(side_effect=OperationCancelledError("stop"))
        sleep = RecordingSleep()

        with pytest.raises(OperationCancelledError):
            with_retries(operation, max_attempts=5, sleep=sleep)

        assert operation.call_count == 1
        assert sleep.calls == []

    def test_cancellation_is_not_fatal_error(self) -> None:
        """Test that cancellation is distinguishable from exhaustion."""
        assert not issubclass(OperationCancelledError, RetriesExhaustedError)
