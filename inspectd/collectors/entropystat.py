from inspectd.collectors.base import PollingCollector

class EntropyStat(PollingCollector):
    prefix = "entropystat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.available = self.metrics.gauge("Available")

    def collect(self) -> None:
        line = self._read_first_line("proc/sys/kernel/random/entropy_avail")
        if not line:
            return
        try:
            self.available.set(float(int(line)))
        except ValueError:
            return
