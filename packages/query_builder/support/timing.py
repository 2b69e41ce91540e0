"""Run-duration helper used by the builder's debug report."""
from __future__ import annotations

import math
import time
from typing import Callable

Clock = Callable[[], float]


def format_duration(seconds: float) -> str:
    """Render a duration in the eye-catching debug format.

    One exclamation mark per second, rounded half up:
    ``Query finished in 4.500 seconds - !!!!!``
    """
    marks = int(math.floor(seconds + 0.5))
    return f"Query finished in {seconds:.3f} seconds - " + "!" * max(marks, 0)


class DurationTimer:
    """Captures a start time on construction and reports elapsed seconds."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self.started_at = clock()

    def elapsed(self) -> float:
        return self._clock() - self.started_at

    def report(self) -> str:
        return format_duration(self.elapsed())
