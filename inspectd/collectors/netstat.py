import re
from typing import Dict, Sequence

from inspectd.collectors.base import PollingCollector
from inspectd.collectors.misc import parse_uint
from inspectd.metrics.gauge import Gauge
from inspectd.metrics.group import MetricGroup

TCP_GAUGES = ("MaxConn", "CurrEstab")
TCP_COUNTERS = ("ActiveOpens", "PassiveOpens", "AttemptFails", "EstabResets",
                "InSegs", "OutSegs", "RetransSegs", "InErrs", "OutRsts")
UDP_COUNTERS = ("InDatagrams", "NoPorts", "InErrors", "OutDatagrams", "RcvbufErrors", "SndbufErrors")
TCP_EXT_COUNTERS = ("SyncookiesSent", "SyncookiesRecv", "SyncookiesFailed", "ListenOverflows", "ListenDrops")

_SPLIT = re.compile(r"[:\s]+")

def parse_section(lines: Sequence[str], prefix: str) -> Dict[str, str]:
    """
    Map names to values for one protocol of /proc/net/snmp style files,
    where a header line and a value line share the same prefix:

        Tcp: RtoAlgorithm RtoMin ... CurrEstab ...
        Tcp: 1 200 ... 45 ...
    """
    rows = [_SPLIT.split(line.strip()) for line in lines if line.startswith(prefix)]
    if len(rows) < 2:
        return {}
    return dict(zip(rows[0][1:], rows[-1][1:]))

class NetStat(PollingCollector):
    """
    TCP and UDP statistics from /proc/net/snmp and /proc/net/netstat,
    registered as tcpstat.*, udpstat.* and tcpstat.ext.*.
    """
    prefix = "netstat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.tcp = MetricGroup(context, "tcpstat", clock=self.clock)
        for name in TCP_GAUGES:
            self.tcp.gauge(name)
        for name in TCP_COUNTERS:
            self.tcp.counter(name)

        self.udp = MetricGroup(context, "udpstat", clock=self.clock)
        for name in UDP_COUNTERS:
            self.udp.counter(name)

        self.tcp_ext = MetricGroup(context, "tcpstat.ext", clock=self.clock)
        for name in TCP_EXT_COUNTERS:
            self.tcp_ext.counter(name)

    def collect(self) -> None:
        snmp = self._read_lines("proc/net/snmp")
        populate(self.tcp, parse_section(snmp, "Tcp:"))
        populate(self.udp, parse_section(snmp, "Udp:"))
        populate(self.tcp_ext, parse_section(self._read_lines("proc/net/netstat"), "TcpExt:"))

    def close(self):
        super().close()
        for group in (self.tcp, self.udp, self.tcp_ext):
            group.unregister()

def populate(group: MetricGroup, values: Dict[str, str]):
    for name, metric in group.items():
        value = values.get(name)
        if value is None:
            continue
        if isinstance(metric, Gauge):
            # MaxConn is -1 when the limit is dynamic
            try:
                metric.set(float(int(value)))
            except ValueError:
                continue
        else:
            metric.set(parse_uint(value))
