"""
Bounded, cancellable polling.

The registration job only waits in one place: while the API server populates
a service account token Secret. Waiting goes through ``threading.Event.wait``
so a termination signal interrupts the delay immediately.
"""

import threading
import time
from collections.abc import Iterator

from register_mgmt_cluster.errors import RegistrationCancelledError


def poll_attempts(
    attempts: int,
    interval: float,
    cancel_event: threading.Event | None = None,
) -> Iterator[int]:
    """
    Yield attempt numbers (1-based), waiting ``interval`` seconds between them.

    The caller breaks out of the loop once its condition is met. When the
    iterator is exhausted the budget is spent. No delay follows the last
    attempt.

    Args:
        attempts: Total number of attempts
        interval: Delay between attempts in seconds
        cancel_event: Event that aborts polling when set

    Raises:
        RegistrationCancelledError: If ``cancel_event`` is set before or
            during a wait
    """
    for attempt in range(1, attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise RegistrationCancelledError(
                f"Cancelled before polling attempt {attempt}/{attempts}"
            )

        yield attempt

        if attempt == attempts:
            break

        if cancel_event is None:
            time.sleep(interval)
        elif cancel_event.wait(interval):
            raise RegistrationCancelledError(
                f"Cancelled while waiting after polling attempt {attempt}/{attempts}"
            )
