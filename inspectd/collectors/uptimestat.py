from inspectd.collectors.base import PollingCollector
from inspectd.collectors.misc import parse_float

class UptimeStat(PollingCollector):
    """
    The two values found in /proc/uptime: total uptime and the sum of idle
    time of all processors, both in seconds.
    """
    prefix = "uptimestat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.uptime = self.metrics.gauge("Uptime")
        self.idle = self.metrics.gauge("Idle")

    def collect(self) -> None:
        f = self._read_first_line("proc/uptime").split()
        if len(f) == 2:
            self.uptime.set(parse_float(f[0]))
            self.idle.set(parse_float(f[1]))
