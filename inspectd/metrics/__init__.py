"""
Metrics Module - inspectd

Typed metrics and the registry that reports them.

Main Components:
- Counter: uint64 counter with per-second rate
- Gauge: point-in-time float (NaN until set)
- BasicCounter: uint64 counter without rate bookkeeping
- StatsTimer: ring buffer of durations with percentiles
- MetricContext: named registry with JSON encoding
- MetricGroup: registers many metrics under a shared prefix

Example Usage:
    from inspectd.metrics import MetricContext, Counter

    m = MetricContext("system")
    reqs = Counter()
    m.register(reqs, "reqs")
    reqs.add(1)
    print(m.to_json())
"""

from inspectd.metrics.basic_counter import BasicCounter
from inspectd.metrics.clock import Clock, NS_IN_SEC, get_clock, set_clock
from inspectd.metrics.context import MetricContext, accept_all
from inspectd.metrics.counter import Counter
from inspectd.metrics.gauge import Gauge
from inspectd.metrics.group import MetricGroup
from inspectd.metrics.kinds import Metric, MetricKind
from inspectd.metrics.stats_timer import PERCENTILES, StatsTimer
from inspectd.metrics.timer import MICROSECOND, MILLISECOND, NANOSECOND, SECOND, Timer

__all__ = [
    "BasicCounter",
    "Clock",
    "Counter",
    "Gauge",
    "Metric",
    "MetricContext",
    "MetricGroup",
    "MetricKind",
    "StatsTimer",
    "Timer",
    "NS_IN_SEC",
    "PERCENTILES",
    "NANOSECOND",
    "MICROSECOND",
    "MILLISECOND",
    "SECOND",
    "accept_all",
    "get_clock",
    "set_clock",
]
