from inspectd.collectors.base import PollingCollector
from inspectd.collectors.misc import parse_float

class LoadStat(PollingCollector):
    """Load averages from /proc/loadavg."""
    prefix = "loadstat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.one_minute = self.metrics.gauge("OneMinute")
        self.five_minute = self.metrics.gauge("FiveMinute")
        self.fifteen_minute = self.metrics.gauge("FifteenMinute")

    def collect(self) -> None:
        f = self._read_first_line("proc/loadavg").split()
        if len(f) > 2:
            self.one_minute.set(parse_float(f[0]))
            self.five_minute.set(parse_float(f[1]))
            self.fifteen_minute.set(parse_float(f[2]))
