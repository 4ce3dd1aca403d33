"""
Collectors Module - inspectd

Pollers that read /proc into metrics registered with a MetricContext.

Main Components:
- CPUStat: per-CPU counters and usage (/proc/stat)
- MemStat: memory gauges (/proc/meminfo)
- LoadStat: load averages (/proc/loadavg)
- UptimeStat: uptime and idle time (/proc/uptime)
- EntropyStat: available entropy (/proc/sys/kernel/random/entropy_avail)
- DiskStat: per-disk IO counters (/proc/diskstats)
- InterfaceStat: per-interface traffic counters (/proc/net/dev)
- NetStat: TCP and UDP counters (/proc/net/snmp, /proc/net/netstat)
- FSStat: block and inode usage per mounted filesystem (/proc/mounts)

Example Usage:
    from inspectd.collectors import LoadStat
    from inspectd.metrics import MetricContext

    m = MetricContext("system")
    stat = LoadStat(m, step=2.0)
    await stat.start()
"""

from inspectd.collectors.base import PollingCollector
from inspectd.collectors.cpustat import CPUStat
from inspectd.collectors.diskstat import DiskStat
from inspectd.collectors.entropystat import EntropyStat
from inspectd.collectors.fsstat import FSStat
from inspectd.collectors.interfacestat import InterfaceStat
from inspectd.collectors.loadstat import LoadStat
from inspectd.collectors.memstat import MemStat
from inspectd.collectors.netstat import NetStat
from inspectd.collectors.uptimestat import UptimeStat

# name accepted in configuration -> collector class
COLLECTORS = {
    "cpustat": CPUStat,
    "memstat": MemStat,
    "loadstat": LoadStat,
    "uptimestat": UptimeStat,
    "entropystat": EntropyStat,
    "diskstat": DiskStat,
    "interfacestat": InterfaceStat,
    "netstat": NetStat,
    "fsstat": FSStat,
}

__all__ = [
    "COLLECTORS",
    "CPUStat",
    "DiskStat",
    "EntropyStat",
    "FSStat",
    "InterfaceStat",
    "LoadStat",
    "MemStat",
    "NetStat",
    "PollingCollector",
    "UptimeStat",
]
