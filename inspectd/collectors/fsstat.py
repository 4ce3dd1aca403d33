import logging
import math
import os
import re
from typing import Dict, List, Optional

from inspectd.collectors.base import PollingCollector
from inspectd.metrics.context import MetricContext
from inspectd.metrics.group import MetricGroup

logger = logging.getLogger(__name__)

# pseudo and virtual filesystems, see fstab(5)
IGNORED_FS_TYPES = frozenset((
    "proc", "sysfs", "devpts", "none", "sunrpc", "swap", "bind", "ignore",
    "tmpfs", "binfmt_misc", "rpc_pipefs",
))

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

def unescape_mount_point(field: str) -> str:
    # /proc/mounts writes a space as \040
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)

class PerFilesystem:
    def __init__(self, context: MetricContext, mount_point: str):
        self.name = mount_point
        self.metrics = MetricGroup(context, f"fsstat.{mount_point}")
        self.bsize = self.metrics.gauge("Bsize")
        self.blocks = self.metrics.gauge("Blocks")
        self.bfree = self.metrics.gauge("Bfree")
        self.bavail = self.metrics.gauge("Bavail")
        self.files = self.metrics.gauge("Files")
        self.ffree = self.metrics.gauge("Ffree")
        # computed stats
        self.usage_pct = self.metrics.gauge("UsagePct")
        self.file_usage_pct = self.metrics.gauge("FileUsagePct")

    def update(self, st: os.statvfs_result):
        self.bsize.set(float(st.f_bsize))
        self.blocks.set(float(st.f_blocks))
        self.bfree.set(float(st.f_bfree))
        self.bavail.set(float(st.f_bavail))
        self.files.set(float(st.f_files))
        self.ffree.set(float(st.f_ffree))
        self.usage_pct.set(self.usage())
        self.file_usage_pct.set(self.file_usage())

    def usage(self) -> float:
        """Block usage in percent."""
        return _used_pct(self.blocks.get(), self.bfree.get())

    def file_usage(self) -> float:
        """Inode usage in percent."""
        return _used_pct(self.files.get(), self.ffree.get())

    def unregister(self):
        self.metrics.unregister()

def _used_pct(total: float, free: float) -> float:
    if not total:
        return math.nan
    return (total - free) / total * 100

class FSStat(PollingCollector):
    """
    Block and inode usage of every mounted filesystem listed in /proc/mounts.

    Metrics of filesystems that are no longer mounted are unregistered.
    """
    prefix = "fsstat"

    def __init__(self, context, **kwargs):
        super().__init__(context, **kwargs)
        self.filesystems: Dict[str, PerFilesystem] = {}

    def collect(self) -> None:
        mounted = set()
        for line in self._read_lines("proc/mounts"):
            f = line.split()
            if len(f) < 3 or f[2] in IGNORED_FS_TYPES or "fuse" in f[2]:
                continue
            mount_point = unescape_mount_point(f[1])
            st = self._statvfs(mount_point)
            if st is None:
                continue
            mounted.add(mount_point)
            fs = self.filesystems.get(mount_point)
            if fs is None:
                fs = PerFilesystem(self.context, mount_point)
                self.filesystems[mount_point] = fs
            fs.update(st)

        for mount_point in list(self.filesystems):
            if mount_point not in mounted:
                self.filesystems.pop(mount_point).unregister()

    def by_usage(self) -> List[PerFilesystem]:
        """Fullest filesystems first."""
        known = [fs for fs in self.filesystems.values() if not math.isnan(fs.usage())]
        return sorted(known, key=lambda fs: fs.usage(), reverse=True)

    def close(self):
        super().close()
        for fs in self.filesystems.values():
            fs.unregister()

    def _statvfs(self, mount_point: str) -> Optional[os.statvfs_result]:
        # mount points are relative to the host root, which may be mounted elsewhere
        path = os.path.join(self.root, mount_point.lstrip("/"))
        try:
            return os.statvfs(path)
        except OSError as e:
            logger.debug(f"statvfs failed on {path}: {e}")
            return None
