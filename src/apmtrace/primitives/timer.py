from __future__ import annotations

import time
from typing import TYPE_CHECKING

from apmtrace.exceptions import InvalidStateError

if TYPE_CHECKING:
    from collections.abc import Callable


class Timer:
    """Single-use monotonic stopwatch.

    A start instant may be supplied up front when the caller already knows
    when the measured interval began. It must come from the same clock.
    """

    def __init__(
        self,
        start: float | None = None,
        *,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._clock = clock
        self._start: float | None = start
        self._end: float | None = None

    @property
    def is_started(self) -> bool:
        return self._start is not None

    @property
    def is_stopped(self) -> bool:
        return self._end is not None

    def start(self) -> None:
        if self._start is not None:
            msg = "Timer has already been started"
            raise InvalidStateError(msg)
        self._start = self._clock()

    def stop(self) -> None:
        if self._start is None:
            msg = "Cannot stop a timer that was never started"
            raise InvalidStateError(msg)
        self._end = self._clock()

    def get_duration_in_milliseconds(self) -> float:
        if self._start is None or self._end is None:
            msg = "Timer duration is only available after start() and stop()"
            raise InvalidStateError(msg)
        return (self._end - self._start) * 1000

    def get_elapsed_in_milliseconds(self) -> float:
        """Milliseconds since start without stopping the timer."""
        if self._start is None:
            msg = "Timer has not been started"
            raise InvalidStateError(msg)
        return (self._clock() - self._start) * 1000
