import math
import re
from typing import Dict, List, Optional

from inspectd.collectors.base import PollingCollector
from inspectd.collectors.misc import parse_uint
from inspectd.metrics.clock import Clock
from inspectd.metrics.context import MetricContext
from inspectd.metrics.group import MetricGroup

_CPU_LINE = re.compile(r"^cpu\d*$")

# columns of a /proc/stat cpu line, after the cpu name
CPU_FIELDS = ("User", "UserLowPrio", "System", "Idle", "Iowait", "Irq", "Softirq", "Steal", "Guest")

class PerCPU:
    """Counters for one CPU (or the "cpu" aggregate) plus a few computed gauges."""

    def __init__(self, context: MetricContext, name: str, clock: Optional[Clock] = None):
        self.name = name
        self.metrics = MetricGroup(context, f"cpustat.{name}", clock=clock)
        self.counters = {field: self.metrics.counter(field) for field in CPU_FIELDS}
        self.total = self.metrics.counter("Total") # total jiffies
        # computed stats
        self.userspace_count = self.metrics.gauge("UserspaceCount")
        self.kernel_count = self.metrics.gauge("KernelCount")
        self.usage_count = self.metrics.gauge("UsageCount")
        self.total_count = self.metrics.gauge("TotalCount")

    def update(self, values: List[str]):
        for field, value in zip(CPU_FIELDS, values):
            self.counters[field].set(parse_uint(value))
        c = self.counters
        self.total.set(c["User"].get() + c["UserLowPrio"].get() + c["System"].get() + c["Idle"].get())

    def populate_computed(self, mult: float):
        self.userspace_count.set(self.user_space() * mult)
        self.kernel_count.set(self.kernel() * mult)
        self.usage_count.set(self.usage() * mult)

    def usage(self) -> float:
        """Fraction of the sampling interval spent doing work."""
        t = self.total.compute_rate()
        if t <= 0:
            return math.nan
        c = self.counters
        return (c["User"].compute_rate() + c["UserLowPrio"].compute_rate() + c["System"].compute_rate()) / t

    def user_space(self) -> float:
        t = self.total.compute_rate()
        if t <= 0:
            return math.nan
        c = self.counters
        return (c["User"].compute_rate() + c["UserLowPrio"].compute_rate()) / t

    def kernel(self) -> float:
        t = self.total.compute_rate()
        if t <= 0:
            return math.nan
        return self.counters["System"].compute_rate() / t

    def unregister(self):
        self.metrics.unregister()

class CPUStat(PollingCollector):
    """
    CPU usage from /proc/stat.

    Aggregate figures are in units of logical CPUs: on a 4 CPU box usage()
    ranges from 0 to 4.
    """
    prefix = "cpustat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.all = PerCPU(context, "cpu", clock=self.clock)
        self.cpus: Dict[str, PerCPU] = {}

    def collect(self) -> None:
        aggregate = None
        for line in self._read_lines("proc/stat"):
            f = line.split()
            if len(f) < len(CPU_FIELDS) + 1 or not _CPU_LINE.match(f[0]):
                continue
            if f[0] == "cpu":
                aggregate = f
                continue
            per_cpu = self.cpus.get(f[0])
            if per_cpu is None:
                per_cpu = PerCPU(self.context, f[0], clock=self.clock)
                self.cpus[f[0]] = per_cpu
            per_cpu.update(f[1:])
            per_cpu.populate_computed(1.0)
            per_cpu.total_count.set(1)

        if aggregate is not None:
            self.all.update(aggregate[1:])
            self.all.populate_computed(float(len(self.cpus)))
            self.all.total_count.set(float(len(self.cpus)))

    def usage(self) -> float:
        return self.all.usage() * len(self.cpus)

    def user_space(self) -> float:
        return self.all.user_space() * len(self.cpus)

    def kernel(self) -> float:
        return self.all.kernel() * len(self.cpus)

    def total(self) -> float:
        """Maximum work that can be done over the sampling interval."""
        return float(len(self.cpus))

    def per_cpu(self, cpu: str) -> Optional[PerCPU]:
        return self.cpus.get(cpu)

    def close(self):
        super().close()
        self.all.unregister()
        for per_cpu in self.cpus.values():
            per_cpu.unregister()
