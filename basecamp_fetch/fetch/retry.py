"""Bounded exponential backoff with cooperative cancellation."""

import time
from collections.abc import Callable
from typing import TypeVar

import structlog

from basecamp_fetch.fetch.cancellation import (
    CancellationToken,
    SleepFn,
    cancellable_sleep,
)
from basecamp_fetch.fetch.constants import DEFAULT_BACKOFF_BASE, DEFAULT_MAX_ATTEMPTS
from basecamp_fetch.fetch.errors import OperationCancelledError, RetriesExhaustedError
from basecamp_fetch.fetch.metrics import FetchMetrics


logger = structlog.get_logger()

T = TypeVar("T")


def with_retries(
    operation: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    *,
    token: CancellationToken | None = None,
    sleep: SleepFn = time.sleep,
    backoff_base: int = DEFAULT_BACKOFF_BASE,
) -> T:
    """Run an operation, retrying failures with exponential backoff.

    The token is checked before every attempt, right after a failed attempt,
    and after every second of backoff. Each call is independent; nothing is remembered between calls.

    Args:
        operation: Zero-argument callable to run.
        max_attempts: Total number of attempts allowed.
        token: Cancellation token to poll, if any.
        sleep: Sleep function (injectable for tests).
        backoff_base: Delay before retry n is backoff_base ** n seconds.

    Returns:
        Whatever the operation returns.

    Raises:
        OperationCancelledError: If cancellation is observed.
        RetriesExhaustedError: If every attempt failed.
        ValueError: If max_attempts is less than 1.
    """
    if max_attempts < 1:
        msg = f"max_attempts must be at least 1, got {max_attempts}"
        raise ValueError(msg)

    log = logger.bind(component="fetch", subcomponent="retry")
    attempt = 0

    while True:
        if token is not None and token.is_cancelled:
            log.info("operation_cancelled", before_attempt=attempt + 1)
            msg = f"Cancelled before attempt #{attempt + 1}"
            raise OperationCancelledError(msg)

        try:
            return operation()
        except OperationCancelledError:
            raise
        except Exception as exc:
            attempt += 1
            if token is not None and token.is_cancelled:
                log.info("operation_cancelled", after_attempt=attempt)
                msg = f"Cancelled after attempt #{attempt}"
                raise OperationCancelledError(msg) from exc

            if attempt >= max_attempts:
                log.error(
                    "retries_exhausted",
                    attempts=attempt,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise RetriesExhaustedError(attempt, exc) from exc

            delay = backoff_base**attempt
            FetchMetrics.get_instance().record_retry()
            log.warning(
                "retry_scheduled",
                attempt=attempt,
                max_attempts=max_attempts,
                delay_seconds=delay,
                error_type=type(exc).__name__,
                error=str(exc),
            )

        try:
            cancellable_sleep(
                delay, token, sleep, message=f"Cancelled during retry #{attempt} sleep"
            )
        except OperationCancelledError:
            log.info("operation_cancelled", during_retry=attempt)
            raise
