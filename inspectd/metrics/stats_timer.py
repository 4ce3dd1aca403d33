"""
StatsTimer computes statistics for a timed operation.

Example use:

    m = MetricContext("webapp")
    s = StatsTimer(MILLISECOND, 100)
    m.register(s, "latency")

    async def handle_query(request):
        with s.time():
            ...

    try:
        p95 = s.percentile(95)
    except PercentileError:
        p95 = None
"""
import threading
from contextlib import contextmanager
from typing import Any, Dict, List

import numpy as np

from inspectd.core.exceptions import InvalidPercentileError, NoSamplesError
from inspectd.metrics.kinds import Metric, MetricKind
from inspectd.metrics.timer import Timer

NOT_INITIALIZED = -1

# percentiles reported when a StatsTimer is serialized
PERCENTILES = (50, 75, 95, 99, 99.9, 99.99, 99.999)

class StatsTimer(Metric):
    kind = MetricKind.STATS_TIMER

    def __init__(self, time_unit: int, nsamples: int):
        """
        Args:
            time_unit: reporting unit in nanoseconds (see inspectd.metrics.timer)
            nsamples: number of samples kept in memory for stats computation
        """
        if nsamples < 1:
            raise ValueError(f"nsamples must be at least 1, got {nsamples}")
        if time_unit <= 0:
            raise ValueError(f"time_unit must be positive, got {time_unit}")
        self.time_unit = time_unit
        self._lock = threading.Lock()
        self._history = np.full(nsamples, NOT_INITIALIZED, dtype=np.int64)
        self._idx = 0

    @property
    def capacity(self) -> int:
        return len(self._history)

    def reset(self) -> None:
        with self._lock:
            self._history.fill(NOT_INITIALIZED)
            self._idx = 0

    def start(self) -> Timer:
        t = Timer()
        t.start()
        return t

    def stop(self, t: Timer) -> float:
        """Record the elapsed time of t and return it in time_unit."""
        return self.record(t.stop())

    def record(self, delta_ns: int) -> float:
        if delta_ns < 0:
            raise ValueError(f"duration must not be negative, got {delta_ns}")
        with self._lock:
            # overwrites the oldest sample once the buffer has wrapped
            self._history[self._idx] = delta_ns
            self._idx = (self._idx + 1) % len(self._history)
        return delta_ns / self.time_unit

    @contextmanager
    def time(self):
        t = self.start()
        try:
            yield t
        finally:
            self.stop(t)

    def percentile(self, percentile: float) -> float:
        """
        Nearest-rank percentile over the samples currently held.

        Raises:
            InvalidPercentileError: percentile outside [0, 100]
            NoSamplesError: nothing was recorded yet
        """
        if not 0 <= percentile <= 100:
            raise InvalidPercentileError(f"invalid percentile: {percentile}")

        with self._lock:
            samples = self._history[self._history != NOT_INITIALIZED]

        n = len(samples)
        if n < 1:
            raise NoSamplesError("no values")

        # zero-indexed, so truncation already rounds up
        rank = int((percentile / 100) * n)
        if rank == n:
            rank = n - 1

        samples.sort()
        return float(samples[rank]) / self.time_unit

    def samples(self) -> List[int]:
        """Recorded durations in nanoseconds, oldest first."""
        with self._lock:
            ordered = np.concatenate((self._history[self._idx:], self._history[:self._idx]))
        return [int(v) for v in ordered if v != NOT_INITIALIZED]

    def marshal_value(self) -> Dict[str, Any]:
        pctiles = []
        for p in PERCENTILES:
            try:
                value = self.percentile(p)
            except NoSamplesError:
                continue
            pctiles.append({"percentile": f"{p:.6f}", "value": value})
        return {"Percentiles": pctiles}

    def __repr__(self) -> str:
        return f"StatsTimer(time_unit={self.time_unit}, capacity={self.capacity})"
