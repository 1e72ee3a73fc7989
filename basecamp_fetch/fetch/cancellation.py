"""Cooperative cancellation for blocking fetch operations."""

import threading
import time
from collections.abc import Callable

from basecamp_fetch.fetch.constants import SLEEP_SLICE_SECONDS
from basecamp_fetch.fetch.errors import OperationCancelledError


SleepFn = Callable[[float], None]


class CancellationToken:
    """Cancellation flag shared between a caller and its fetch operations.

    The token is only ever read at explicit checkpoints. It can be set from
    another thread or from a signal handler; nothing in the fetch layer
    resets it.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Check whether cancellation was requested."""
        return self._event.is_set()

    def raise_if_cancelled(self, message: str = "Operation cancelled") -> None:
        """Raise if cancellation was requested.

        Args:
            message: Message for the raised error.

        Raises:
            OperationCancelledError: If the token is cancelled.
        """
        if self._event.is_set():
            raise OperationCancelledError(message)


def cancellable_sleep(
    seconds: float,
    token: CancellationToken | None,
    sleep: SleepFn = time.sleep,
    message: str = "Cancelled during sleep",
) -> None:
    """Sleep in one-second slices, checking the token after each slice.

    Args:
        seconds: Total time to sleep.
        token: Cancellation token to poll, if any.
        sleep: Sleep function (injectable for tests).
        message: Message for the raised error.

    Raises:
        OperationCancelledError: If the token is cancelled mid-sleep.
    """
    remaining = float(seconds)
    while remaining > 0:
        step = min(SLEEP_SLICE_SECONDS, remaining)
        sleep(step)
        remaining -= step
        if token is not None:
            token.raise_if_cancelled(message)
