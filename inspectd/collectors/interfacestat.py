import math
from typing import Dict, List, Optional

from inspectd.collectors.base import PollingCollector
from inspectd.collectors.misc import parse_uint, read_uint_from_file
from inspectd.metrics.clock import Clock
from inspectd.metrics.context import MetricContext
from inspectd.metrics.group import MetricGroup

# receive then transmit columns of /proc/net/dev
_RX_COLUMNS = ("bytes", "packets", "errs", "drop", "fifo", "frame", "compressed", "multicast")
_TX_COLUMNS = ("bytes", "packets", "errs", "drop", "fifo", "colls", "carrier", "compressed")
INTERFACE_FIELDS = tuple("RX" + c for c in _RX_COLUMNS) + tuple("TX" + c for c in _TX_COLUMNS)

MEGABIT = 1_000_000

class PerInterface:
    def __init__(self, context: MetricContext, name: str, clock: Optional[Clock] = None):
        self.name = name
        self.metrics = MetricGroup(context, f"interfacestat.{name}", clock=clock)
        self.counters = {field: self.metrics.counter(field) for field in INTERFACE_FIELDS}
        self.speed = self.metrics.gauge("Speed") # Mb/s, as reported by the driver

    def update(self, values: List[str], speed: int):
        for field, value in zip(INTERFACE_FIELDS, values):
            self.counters[field].set(parse_uint(value))
        # virtual interfaces report no speed
        if speed > 0:
            self.speed.set(float(speed))

    def rx_bandwidth(self) -> float:
        """Bits received per second."""
        return self.counters["RXbytes"].compute_rate() * 8

    def tx_bandwidth(self) -> float:
        return self.counters["TXbytes"].compute_rate() * 8

    def link_speed(self) -> float:
        """Link speed in bits per second, NaN when unknown."""
        return self.speed.get() * MEGABIT

    # Full duplex is assumed.
    def rx_bandwidth_usage(self) -> float:
        return self.rx_bandwidth() / self.link_speed() * 100

    def tx_bandwidth_usage(self) -> float:
        return self.tx_bandwidth() / self.link_speed() * 100

    def unregister(self):
        self.metrics.unregister()

class InterfaceStat(PollingCollector):
    """Per network interface traffic from /proc/net/dev."""
    prefix = "interfacestat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.interfaces: Dict[str, PerInterface] = {}

    def collect(self) -> None:
        for line in self._read_lines("proc/net/dev"):
            # the two header lines have no colon
            dev, sep, rest = line.partition(":")
            if not sep:
                continue
            values = rest.split()
            if len(values) < len(INTERFACE_FIELDS):
                continue
            dev = dev.strip()
            iface = self.interfaces.get(dev)
            if iface is None:
                iface = PerInterface(self.context, dev, clock=self.clock)
                self.interfaces[dev] = iface
            iface.update(values, read_uint_from_file(self.path(f"sys/class/net/{dev}/speed")))

    def by_usage(self) -> List[PerInterface]:
        """Interfaces carrying the most traffic first."""
        active = [i for i in self.interfaces.values()
                  if not math.isnan(i.rx_bandwidth()) and not math.isnan(i.tx_bandwidth())]
        return sorted(active, key=lambda i: i.rx_bandwidth() + i.tx_bandwidth(), reverse=True)

    def close(self):
        super().close()
        for iface in self.interfaces.values():
            iface.unregister()
