"""Fixed-interval polling of asynchronous platform tasks.

Generation and synchronization requests return ``202 Accepted`` with a
task locator. :class:`TaskPoller` re-fetches that locator until the
task's ``status`` is terminal or a deadline passes. Reaching the deadline
is not an error here: the last payload is returned and the caller decides,
via :func:`is_success`, whether the run fails.

The interval is fixed (no backoff); task durations are short and an
operator is watching the pipeline.
"""

from __future__ import annotations

import re
import time
from typing import Any, Callable, Optional

from specsync.client.platform import PlatformAPI
from specsync.output import debug, warning

_TERMINAL = re.compile(r"^(success|failed|completed)$", re.IGNORECASE)
_SUCCESS = re.compile(r"^(success|completed)$", re.IGNORECASE)


def task_status(payload: Any) -> Optional[str]:
    """Return the ``status`` field of a task payload as a string, if any."""
    if isinstance(payload, dict) and payload.get("status") is not None:
        return str(payload["status"])
    return None


def is_terminal(payload: Any) -> bool:
    """True when the task has finished, successfully or not."""
    status = task_status(payload)
    return bool(status and _TERMINAL.match(status))


def is_success(payload: Any) -> bool:
    """True when the task finished successfully."""
    status = task_status(payload)
    return bool(status and _SUCCESS.match(status))


class TaskPoller:
    """Poll a task locator until it reaches a terminal state.

    Args:
        api: Platform API used to fetch the task.
        timeout: Seconds after which polling stops.
        interval: Seconds slept between fetches.
        sleep: Sleep function, replaceable in tests.
        clock: Monotonic clock, replaceable in tests.
    """

    def __init__(
        self,
        api: PlatformAPI,
        timeout: float = 180.0,
        interval: float = 3.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api
        self.timeout = timeout
        self.interval = interval
        self._sleep = sleep
        self._clock = clock

    def poll(self, locator: str) -> Any:
        """Fetch *locator* until terminal or until the deadline elapses.

        Returns:
            The terminal payload, or the last payload observed when the
            deadline elapsed first.
        """
        started = self._clock()
        attempt = 0
        while True:
            attempt += 1
            payload = self._api.get_task(locator)
            debug(f"Task {locator} attempt {attempt}: status={task_status(payload)}")
            if is_terminal(payload):
                return payload
            if self._clock() - started >= self.timeout:
                warning(
                    f"Task {locator} still '{task_status(payload)}' after "
                    f"{self.timeout:g}s, giving up"
                )
                return payload
            self._sleep(self.interval)
