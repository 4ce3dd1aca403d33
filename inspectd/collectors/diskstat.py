import logging
import os
from typing import Dict, List, Optional, Set

from inspectd.collectors.base import PollingCollector
from inspectd.collectors.misc import parse_uint, read_uint_from_file
from inspectd.metrics.clock import Clock
from inspectd.metrics.context import MetricContext
from inspectd.metrics.group import MetricGroup

logger = logging.getLogger(__name__)

# columns of /proc/diskstats after major, minor and device name
DISK_FIELDS = (
    "ReadCompleted", "ReadMerged", "ReadSectors", "ReadSpentMsecs",
    "WriteCompleted", "WriteMerged", "WriteSectors", "WriteSpentMsecs",
    "IOInProgress", "IOSpentMsecs", "WeightedIOSpentMsecs",
)

# ramdisk, loop and device-mapper majors
SKIPPED_MAJORS = (1, 7, 253)

# /proc/diskstats counts 512 byte sectors whatever the hardware sector size
DISKSTATS_SECTOR = 512

class PerDisk:
    def __init__(self, context: MetricContext, name: str, clock: Optional[Clock] = None):
        self.name = name
        self.metrics = MetricGroup(context, f"diskstat.{name}", clock=clock)
        # IOInProgress goes up and down, everything else only grows
        self.counters = {field: self.metrics.counter(field) for field in DISK_FIELDS if field != "IOInProgress"}
        self.io_in_progress = self.metrics.gauge("IOInProgress")
        self.sector_size = self.metrics.gauge("SectorSize")

    def update(self, values: List[str], sector_size: int):
        for field, value in zip(DISK_FIELDS, values):
            if field == "IOInProgress":
                self.io_in_progress.set(float(parse_uint(value)))
            else:
                self.counters[field].set(parse_uint(value))
        self.sector_size.set(float(sector_size))

    def usage(self) -> float:
        """Percentage of wall clock time spent doing IO."""
        return self.counters["IOSpentMsecs"].compute_rate() / 1000 * 100

    def read_bytes(self) -> float:
        """Bytes read per second."""
        return self.counters["ReadSectors"].compute_rate() * DISKSTATS_SECTOR

    def write_bytes(self) -> float:
        return self.counters["WriteSectors"].compute_rate() * DISKSTATS_SECTOR

    def unregister(self):
        self.metrics.unregister()

class DiskStat(PollingCollector):
    """
    IO statistics for whole block devices from /proc/diskstats.

    Partitions are left out: only names listed under /sys/block are kept.
    """
    prefix = "diskstat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.disks: Dict[str, PerDisk] = {}
        self.block_devices: Set[str] = set()

    def refresh_block_devices(self):
        try:
            self.block_devices = set(os.listdir(self.path("sys/block")))
        except OSError as e:
            logger.debug(f"Unable to list block devices: {e}")
            self.block_devices = set()

    def collect(self) -> None:
        lines = self._read_lines("proc/diskstats")
        # devices come and go (usb, hotplug), so look every time
        self.refresh_block_devices()

        for line in lines:
            f = line.split()
            if len(f) < len(DISK_FIELDS) + 3:
                continue
            if parse_uint(f[0]) in SKIPPED_MAJORS or f[2] not in self.block_devices:
                continue
            disk = self.disks.get(f[2])
            if disk is None:
                disk = PerDisk(self.context, f[2], clock=self.clock)
                self.disks[f[2]] = disk
            sector_size = read_uint_from_file(self.path(f"sys/block/{f[2]}/queue/hw_sector_size"))
            disk.update(f[3:3 + len(DISK_FIELDS)], sector_size)

    def by_usage(self) -> List[PerDisk]:
        """Disks, busiest first."""
        return sorted(self.disks.values(), key=lambda d: d.usage(), reverse=True)

    def close(self):
        super().close()
        for disk in self.disks.values():
            disk.unregister()
