import threading
from typing import Any, Dict, Optional

from inspectd.metrics.clock import Clock, NS_IN_SEC, get_clock
from inspectd.metrics.kinds import Metric, MetricKind, to_uint64

class Counter(Metric):
    """
    Always incrementing uint64 with rate-of-change per second.

    Every operation holds the counter's lock. Use BasicCounter when the rate
    is not needed.
    """
    kind = MetricKind.COUNTER

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock if clock is not None else get_clock()
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._value = 0
            self._previous = 0
            self._rate = 0.0
            self._ticks_current = 0
            self._ticks_previous: Optional[int] = None

    def set(self, v: int) -> None:
        """Set the counter to v. Useful when the source is already a counter."""
        with self._lock:
            self._ticks_current = self._clock.now()
            self._value = to_uint64(v)
            self._rebase_if_needed()

    def add(self, delta: int) -> None:
        with self._lock:
            self._ticks_current = self._clock.now()
            self._value = to_uint64(self._value + delta)
            self._rebase_if_needed()

    def get(self) -> int:
        with self._lock:
            return self._value

    def compute_rate(self) -> float:
        """
        Rate of change per second since the last successful call.

        Returns the previously computed rate when no clock time has elapsed
        or when the value went backwards.
        """
        with self._lock:
            if self._ticks_previous is None:
                return self._rate

            delta_time = self._ticks_current - self._ticks_previous
            if delta_time > 0 and self._value >= self._previous:
                delta_value = self._value - self._previous
                self._rate = (delta_value / delta_time) * NS_IN_SEC
                self._previous = self._value
                self._ticks_previous = self._ticks_current

            return self._rate

    def marshal_value(self) -> Dict[str, Any]:
        rate = self.compute_rate()
        return {"current": self.get(), "rate": rate}

    def _rebase_if_needed(self):
        if self._ticks_previous is None:
            self._previous = self._value
            self._ticks_previous = self._ticks_current
        elif self._previous > self._value:
            # source counter was reset or overflowed; report 0 until the next delta
            self._previous = self._value
            self._ticks_previous = self._ticks_current
            self._rate = 0.0

    def __repr__(self) -> str:
        return f"Counter(value={self._value}, rate={self._rate})"
