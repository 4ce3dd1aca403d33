import math
import threading

from inspectd.metrics.kinds import Metric, MetricKind

class Gauge(Metric):
    """Point-in-time float value. NaN means nothing was observed yet."""
    kind = MetricKind.GAUGE

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._value = math.nan

    def set(self, v: float) -> None:
        with self._lock:
            self._value = float(v)

    def get(self) -> float:
        with self._lock:
            return self._value

    def marshal_value(self) -> float:
        return self.get()

    def __repr__(self) -> str:
        return f"Gauge(value={self._value})"
