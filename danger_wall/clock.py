"""
Clocks
=======
Millisecond time sources. Every timed check polls one of these.
"""

import time


class MonotonicClock:
    """Wall-independent clock for real play."""

    def now(self) -> float:
        return time.perf_counter() * 1000.0


class ManualClock:
    """Clock that only moves when told to. Used by replays and tests."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, ms: float) -> float:
        self._now += ms
        return self._now
