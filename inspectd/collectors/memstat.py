import math
import re
from typing import Dict, List

from inspectd.collectors.base import PollingCollector
from inspectd.collectors.misc import parse_uint
from inspectd.metrics.gauge import Gauge

# /proc/meminfo fields exported as gauges, in bytes when the kernel reports kB
MEMINFO_FIELDS = (
    "MemTotal", "MemFree", "Buffers", "Cached", "SwapCached",
    "Active", "Inactive", "Active(anon)", "Inactive(anon)", "Active(file)", "Inactive(file)",
    "Unevictable", "Mlocked", "SwapTotal", "SwapFree", "Dirty", "Writeback",
    "AnonPages", "Mapped", "Shmem", "Slab", "SReclaimable", "SUnreclaim",
    "KernelStack", "PageTables", "NFS_Unstable", "Bounce", "WritebackTmp",
    "CommitLimit", "Committed_AS", "VmallocTotal", "VmallocUsed", "VmallocChunk",
    "HardwareCorrupted", "AnonHugePages", "HugePages_Total", "HugePages_Free",
    "HugePages_Rsvd", "HugePages_Surp", "Hugepagesize", "DirectMap4k", "DirectMap2M",
)

_SPLIT = re.compile(r"[:\s]+")

def metric_name(field: str) -> str:
    # Active(anon) -> Active_anon
    return field.replace("(", "_").replace(")", "")

class MemStat(PollingCollector):
    """Physical memory usage from /proc/meminfo."""
    prefix = "memstat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.gauges: Dict[str, Gauge] = {
            field: self.metrics.gauge(metric_name(field)) for field in MEMINFO_FIELDS
        }

    def collect(self) -> None:
        for line in self._read_lines("proc/meminfo"):
            fields = _SPLIT.split(line.strip(), 2)
            g = self.gauges.get(fields[0])
            if g is not None:
                parse_mem_line(g, fields)

    def free(self) -> float:
        """Free physical memory including buffers/caches/sreclaimable."""
        g = self.gauges
        return g["MemFree"].get() + g["Buffers"].get() + g["Cached"].get() + g["SReclaimable"].get()

    def usage(self) -> float:
        """Physical memory in use, not counting buffers/cached/sreclaimable."""
        return self.total() - self.free()

    def total(self) -> float:
        return self.gauges["MemTotal"].get()

def parse_mem_line(g: Gauge, fields: List[str]):
    if len(fields) < 2 or not fields[1]:
        g.set(math.nan)
        return
    value = float(parse_uint(fields[1]))
    if len(fields) > 2 and fields[2] == "kB":
        value *= 1024
    g.set(value)
