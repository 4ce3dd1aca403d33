import math
from typing import List, Tuple

from inspectd.collectors.misc import BitSize, ByteSize
from inspectd.core.exceptions import NoSamplesError
from inspectd.metrics.context import MetricContext
from inspectd.metrics.kinds import MetricKind

# thresholds for reported problems, in percent
CPU_USAGE_LIMIT = 80.0
CPU_KERNEL_LIMIT = 30.0
MEM_USAGE_LIMIT = 80.0
DISK_USAGE_LIMIT = 75.0
FS_USAGE_LIMIT = 90.0
BANDWIDTH_USAGE_LIMIT = 75.0

# entries shown per disk, filesystem and interface section
TOP_N = 5

REPORTED_PERCENTILES = (50, 95, 99)

def format_metrics(context: MetricContext) -> List[str]:
    """
    One line per metric, suitable for parsing:

        memstat.MemTotal 8589934592
        cpustat.cpu.User current=1234 rate=12.000000
        cpustat.CollectTime p50=0.120 p95=0.210 p99=0.400

    Gauges that were never set and metrics rejected by the output filter
    are left out.
    """
    lines = []
    for kind, name, metric in context.metrics():
        if not context.output_filter(name, metric):
            continue
        if kind == MetricKind.GAUGE:
            value = metric.get()
            if math.isnan(value):
                continue
            lines.append(f"{name} {value:g}")
        elif kind == MetricKind.BASIC_COUNTER:
            lines.append(f"{name} {metric.get()}")
        elif kind == MetricKind.COUNTER:
            rate = metric.compute_rate()
            lines.append(f"{name} current={metric.get()} rate={rate:f}")
        elif kind == MetricKind.STATS_TIMER:
            try:
                parts = [f"p{p}={metric.percentile(p):.3f}" for p in REPORTED_PERCENTILES]
            except NoSamplesError:
                continue
            lines.append(f"{name} " + " ".join(parts))
    return lines

def _pct(part: float, whole: float) -> float:
    if not whole or math.isnan(part) or math.isnan(whole):
        return math.nan
    return part / whole * 100

def summarize(cstat, mstat) -> Tuple[str, List[str]]:
    """Summary line of CPU and memory usage, and the problems worth flagging."""
    cpu_pct = _pct(cstat.usage(), cstat.total())
    user_pct = _pct(cstat.user_space(), cstat.total())
    kernel_pct = _pct(cstat.kernel(), cstat.total())
    mem_pct = _pct(mstat.usage(), mstat.total())

    summary = (f"total: cpu: {cpu_pct:3.1f}% user: {user_pct:3.1f}%, "
               f"kernel: {kernel_pct:3.1f}%, mem: {mem_pct:3.1f}%")

    # comparisons with NaN are False, so unknown usage never raises a problem
    problems = []
    if cpu_pct > CPU_USAGE_LIMIT:
        problems.append(f"CPU usage > {CPU_USAGE_LIMIT:.0f}%")
    if kernel_pct > CPU_KERNEL_LIMIT:
        problems.append(f"CPU usage in kernel > {CPU_KERNEL_LIMIT:.0f}%")
    if mem_pct > MEM_USAGE_LIMIT:
        problems.append(f"Memory usage > {MEM_USAGE_LIMIT:.0f}%")
    return summary, problems

def disk_report(dstat) -> Tuple[List[str], List[str]]:
    disks = dstat.by_usage()
    lines = [f"diskio: {d.name} {d.usage():3.1f}% r: {ByteSize(d.read_bytes())}/s w: {ByteSize(d.write_bytes())}/s"
             for d in disks[:TOP_N]]
    problems = [f"Disk IO usage on ({d.name}): {d.usage():3.1f}%"
                for d in disks if d.usage() > DISK_USAGE_LIMIT]
    return lines, problems

def filesystem_report(fsstat) -> Tuple[List[str], List[str]]:
    filesystems = fsstat.by_usage()
    lines = [f"filesystem: {fs.name} {fs.usage():3.1f}% i: {fs.file_usage():3.1f}%"
             for fs in filesystems[:TOP_N]]
    problems = []
    for fs in filesystems:
        if fs.usage() > FS_USAGE_LIMIT:
            problems.append(f"FS block usage on ({fs.name}): {fs.usage():3.1f}%")
        if fs.file_usage() > FS_USAGE_LIMIT:
            problems.append(f"FS inode usage on ({fs.name}): {fs.file_usage():3.1f}%")
    return lines, problems

def interface_report(ifstat) -> Tuple[List[str], List[str]]:
    interfaces = ifstat.by_usage()
    lines = [f"interface: {i.name} r: {BitSize(i.rx_bandwidth())}/s t: {BitSize(i.tx_bandwidth())}/s"
             for i in interfaces[:TOP_N]]
    # usage is NaN when the link speed is unknown, and never flagged
    problems = []
    for i in interfaces:
        if i.tx_bandwidth_usage() > BANDWIDTH_USAGE_LIMIT:
            problems.append(f"TX bandwidth usage on ({i.name}): {i.tx_bandwidth_usage():3.1f}%")
        if i.rx_bandwidth_usage() > BANDWIDTH_USAGE_LIMIT:
            problems.append(f"RX bandwidth usage on ({i.name}): {i.rx_bandwidth_usage():3.1f}%")
    return lines, problems
