from typing import Dict, Iterator, List, Optional, Tuple

from inspectd.metrics.basic_counter import BasicCounter
from inspectd.metrics.clock import Clock
from inspectd.metrics.context import MetricContext
from inspectd.metrics.counter import Counter
from inspectd.metrics.gauge import Gauge
from inspectd.metrics.kinds import Metric
from inspectd.metrics.stats_timer import StatsTimer

class MetricGroup:
    """
    Creates metrics and registers each one as "<prefix>.<suffix>".

    Collectors declare their metrics explicitly through a group:

        group = MetricGroup(context, "loadstat")
        one_minute = group.gauge("OneMinute")
        ...
        group.unregister()
    """

    def __init__(self, context: MetricContext, prefix: str, register: bool = True,
                 clock: Optional[Clock] = None):
        self.context = context
        self.prefix = prefix
        self._register = register
        self.clock = clock
        self._metrics: Dict[str, Metric] = {}

    def name(self, suffix: str) -> str:
        return f"{self.prefix}.{suffix}"

    def add(self, suffix: str, metric: Metric) -> Metric:
        if suffix in self._metrics:
            raise ValueError(f"metric {self.name(suffix)} already declared")
        self._metrics[suffix] = metric
        if self._register:
            self.context.register(metric, self.name(suffix))
        return metric

    def counter(self, suffix: str) -> Counter:
        return self.add(suffix, Counter(clock=self.clock))

    def gauge(self, suffix: str) -> Gauge:
        return self.add(suffix, Gauge())

    def basic_counter(self, suffix: str) -> BasicCounter:
        return self.add(suffix, BasicCounter())

    def stats_timer(self, suffix: str, time_unit: int, nsamples: int) -> StatsTimer:
        return self.add(suffix, StatsTimer(time_unit, nsamples))

    def unregister(self):
        for suffix, metric in self._metrics.items():
            self.context.unregister(metric, self.name(suffix))

    def items(self) -> List[Tuple[str, Metric]]:
        return list(self._metrics.items())

    def __getitem__(self, suffix: str) -> Metric:
        return self._metrics[suffix]

    def __contains__(self, suffix: str) -> bool:
        return suffix in self._metrics

    def __iter__(self) -> Iterator[str]:
        return iter(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)
