import time

# time units, in nanoseconds
NANOSECOND = 1
MICROSECOND = 1_000
MILLISECOND = 1_000_000
SECOND = 1_000_000_000

class Timer:
    """Stopwatch backed by time.perf_counter_ns."""

    def __init__(self):
        self._start = 0
        self._value = 0

    def start(self):
        self._value = 0
        self._start = time.perf_counter_ns()

    def stop(self) -> int:
        """Stop the timer and return the elapsed nanoseconds."""
        self._value = max(time.perf_counter_ns() - self._start, 0)
        return self._value

    def get(self) -> int:
        """Elapsed nanoseconds of the last stop(), zero while still running."""
        return self._value
