import threading

from inspectd.metrics.kinds import Metric, MetricKind, to_uint64

class BasicCounter(Metric):
    """
    Minimal uint64 counter without rate bookkeeping.

    Usage:
        b = BasicCounter()
        b.add(1)
        b.get()
    """
    kind = MetricKind.BASIC_COUNTER

    def __init__(self):
        # guards the read-modify-write in add(); held for a single operation only
        self._lock = threading.Lock()
        self._value = 0

    def reset(self) -> None:
        self.set(0)

    def set(self, v: int) -> None:
        with self._lock:
            self._value = to_uint64(v)

    def add(self, delta: int) -> None:
        with self._lock:
            self._value = to_uint64(self._value + delta)

    def get(self) -> int:
        return self._value

    def marshal_value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"BasicCounter(value={self._value})"
