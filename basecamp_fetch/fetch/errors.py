"""Error types for the fetch layer."""

from basecamp_fetch.fetch.models import FetchErrorClass


class FetchFailure(Exception):
    """Base exception for fetch failures."""


class TransientFetchError(FetchFailure):
    """Network failure or server error that may succeed on retry.

    Attributes:
        error_class: Classification of the failure.
        status_code: HTTP status code if a response was received.
    """

    def __init__(
        self,
        error_class: FetchErrorClass,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.status_code = status_code


class FetchFatalError(FetchFailure):
    """Non-retryable fetch failure.

    Raised for unexpected status codes, undecodable payloads and exhausted
    retry budgets. Callers are expected to abort work on the resource.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        """Initialize the fatal error.

        Args:
            message: Human-readable error message.
            url: URL that failed (credentials already redacted).
            status_code: HTTP status code if available.
            body: Response body text if available.
        """
        super().__init__(message)
        self.message = message
        self.url = url
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "message": self.message,
            "url": self.url,
            "status_code": self.status_code,
        }


class RetriesExhaustedError(FetchFatalError):
    """Raised when an operation failed on every allowed attempt."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        """Initialize the error.

        Args:
            attempts: Number of attempts made.
            last_error: Exception raised by the final attempt.
        """
        status_code = getattr(last_error, "status_code", None)
        super().__init__(
            f"Giving up after {attempts} attempts: {last_error}",
            status_code=status_code,
        )
        self.attempts = attempts
        self.last_error = last_error


class OperationCancelledError(FetchFailure):
    """Raised when a cancellation request is observed.

    Distinct from FetchFatalError so callers can exit quietly.
    """
