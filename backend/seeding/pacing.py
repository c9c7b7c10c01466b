"""Pacing policies spacing out external API calls between descriptors"""
import time


class NoPacing:
    """Never waits. Used in tests and for dry runs."""

    def wait(self):
        return 0.0


class FixedIntervalPacer:
    """
    Keeps at least `interval` seconds between consecutive `wait()` returns.
    The first call never blocks.
    """

    def __init__(self, interval, clock=time.monotonic, sleep=time.sleep):
        self.interval = max(0.0, float(interval))
        self.clock = clock
        self.sleep = sleep
        self._last = None

    def wait(self):
        delay = 0.0
        if self._last is not None and self.interval:
            delay = self.interval - (self.clock() - self._last)
            if delay > 0:
                self.sleep(delay)
            else:
                delay = 0.0
        self._last = self.clock()
        return delay
