import asyncio
import logging
import math

import pytest

from inspectd.collectors import COLLECTORS
from inspectd.collectors.cpustat import CPUStat
from inspectd.collectors.diskstat import DiskStat
from inspectd.collectors.entropystat import EntropyStat
from inspectd.collectors.fsstat import FSStat, unescape_mount_point
from inspectd.collectors.interfacestat import InterfaceStat
from inspectd.collectors.loadstat import LoadStat
from inspectd.collectors.memstat import MemStat
from inspectd.collectors.netstat import NetStat, parse_section
from inspectd.collectors.uptimestat import UptimeStat
from inspectd.core.exceptions import CollectorError

from conftest import DISKSTATS_T1, MOUNTS, NET_DEV_T1, NS, SNMP, STAT_T1, write_proc

KB = 1024

def test_loadstat(context, proc_root):
    lstat = LoadStat(context, root=str(proc_root))
    lstat.collect()
    assert lstat.one_minute.get() == 0.13
    assert lstat.five_minute.get() == 0.25
    assert lstat.fifteen_minute.get() == 0.30
    assert context.gauges["loadstat.OneMinute"] is lstat.one_minute

def test_uptimestat(context, proc_root):
    ustat = UptimeStat(context, root=str(proc_root))
    ustat.collect()
    assert ustat.uptime.get() == 1
    assert ustat.idle.get() == 4

def test_entropystat(context, proc_root):
    estat = EntropyStat(context, root=str(proc_root))
    estat.collect()
    assert estat.available.get() == 3012
    assert "entropystat.Available" in context.gauges

def test_memstat(context, proc_root):
    mstat = MemStat(context, root=str(proc_root))
    mstat.collect()
    assert mstat.total() == 2048 * KB
    assert mstat.free() == (512 + 128 + 256 + 64) * KB
    assert mstat.usage() == (2048 - 960) * KB
    assert context.gauges["memstat.Active_anon"].get() == 100 * KB
    # no unit, taken as is
    assert context.gauges["memstat.HugePages_Total"].get() == 0
    # absent from the file
    assert math.isnan(context.gauges["memstat.Dirty"].get())
    assert "memstat.Bogus" not in context.gauges

def test_cpustat(context, proc_root, clock):
    cstat = CPUStat(context, root=str(proc_root), clock=clock)
    cstat.collect()
    assert cstat.total() == 2.0
    # one sample is not enough for a rate
    assert math.isnan(cstat.all.usage_count.get())

    clock.advance(NS)
    write_proc(proc_root, "proc/stat", STAT_T1)
    cstat.collect()

    assert cstat.usage() == pytest.approx(0.6)
    assert cstat.user_space() == pytest.approx(0.4)
    assert cstat.kernel() == pytest.approx(0.2)
    assert cstat.all.usage_count.get() == pytest.approx(0.6)
    assert cstat.all.total_count.get() == 2.0

    cpu0 = cstat.per_cpu("cpu0")
    assert cpu0.usage_count.get() == pytest.approx(0.3)
    assert cpu0.total_count.get() == 1.0
    assert cpu0.total.get() == 150 + 75 + 775
    assert cstat.per_cpu("cpu7") is None

def test_cpustat_registers_per_cpu_metrics(context, proc_root, clock):
    cstat = CPUStat(context, root=str(proc_root), clock=clock)
    cstat.collect()
    counters = context.counters
    for cpu in ("cpu", "cpu0", "cpu1"):
        assert f"cpustat.{cpu}.User" in counters
        assert f"cpustat.{cpu}.Total" in counters
        assert f"cpustat.{cpu}.UsageCount" in context.gauges
    assert not any(name.startswith("cpustat.intr") for name in counters)

def test_diskstat(context, proc_root, clock):
    dstat = DiskStat(context, root=str(proc_root), clock=clock)
    dstat.collect()
    # partitions, ramdisks, loop and device-mapper devices are left out
    assert list(dstat.disks) == ["sda"]
    sda = dstat.disks["sda"]
    assert sda.counters["ReadSectors"].get() == 20000
    assert sda.counters["WeightedIOSpentMsecs"].get() == 150000
    assert sda.io_in_progress.get() == 3
    assert sda.sector_size.get() == 4096
    assert context.counters["diskstat.sda.IOSpentMsecs"] is sda.counters["IOSpentMsecs"]
    assert "diskstat.sda.IOInProgress" in context.gauges

    clock.advance(NS)
    write_proc(proc_root, "proc/diskstats", DISKSTATS_T1)
    dstat.collect()

    assert sda.io_in_progress.get() == 1
    # 500ms of IO in one second
    assert sda.usage() == pytest.approx(50.0)
    assert sda.read_bytes() == pytest.approx(2048 * 512)
    assert sda.write_bytes() == 0
    assert dstat.by_usage() == [sda]

def test_interfacestat(context, proc_root, clock):
    ifstat = InterfaceStat(context, root=str(proc_root), clock=clock)
    ifstat.collect()
    assert set(ifstat.interfaces) == {"lo", "eth0"}
    eth0 = ifstat.interfaces["eth0"]
    assert eth0.counters["RXbytes"].get() == 5000000
    assert eth0.counters["RXmulticast"].get() == 12
    assert eth0.speed.get() == 100
    assert "interfacestat.eth0.TXcarrier" in context.counters
    # no speed file for lo
    assert math.isnan(ifstat.interfaces["lo"].speed.get())

    clock.advance(NS)
    write_proc(proc_root, "proc/net/dev", NET_DEV_T1)
    ifstat.collect()

    assert eth0.counters["TXcarrier"].get() == 2
    assert eth0.rx_bandwidth() == pytest.approx(100_000_000)
    assert eth0.tx_bandwidth() == pytest.approx(10_000_000)
    assert eth0.rx_bandwidth_usage() == pytest.approx(100.0)
    assert eth0.tx_bandwidth_usage() == pytest.approx(10.0)
    assert math.isnan(ifstat.interfaces["lo"].rx_bandwidth_usage())
    assert [i.name for i in ifstat.by_usage()] == ["eth0", "lo"]

def test_netstat(context, proc_root):
    nstat = NetStat(context, root=str(proc_root))
    nstat.collect()
    assert nstat.tcp["CurrEstab"].get() == 45
    assert nstat.tcp["MaxConn"].get() == -1
    assert nstat.tcp["OutRsts"].get() == 77
    assert nstat.udp["OutDatagrams"].get() == 248067
    assert nstat.tcp_ext["ListenDrops"].get() == 13
    assert "tcpstat.CurrEstab" in context.gauges
    assert "udpstat.InDatagrams" in context.counters
    assert "tcpstat.ext.SyncookiesSent" in context.counters
    assert "netstat.CollectTime" in context.stats_timers

def test_netstat_without_extended_file(context, proc_root):
    (proc_root / "proc/net/netstat").unlink()
    nstat = NetStat(context, root=str(proc_root))
    with pytest.raises(CollectorError):
        nstat.collect()
    # snmp values were still read
    assert nstat.tcp["CurrEstab"].get() == 45
    assert nstat.tcp_ext["ListenDrops"].get() == 0

def test_parse_section():
    values = parse_section(SNMP.splitlines(), "Udp:")
    assert values["OutDatagrams"] == "248067"
    assert values["InCsumErrors"] == "0"
    assert parse_section(SNMP.splitlines(), "Icmp:") == {}

def test_fsstat(context, proc_root):
    fstat = FSStat(context, root=str(proc_root))
    fstat.collect()
    # proc, tmpfs and fuse mounts are ignored
    assert set(fstat.filesystems) == {"/", "/data", "/mnt/my disk"}
    data = fstat.filesystems["/data"]
    assert data.blocks.get() > 0
    assert 0 <= data.usage() <= 100
    assert data.usage_pct.get() == data.usage()
    assert context.gauges["fsstat./data.Bsize"] is data.bsize

    write_proc(proc_root, "proc/mounts", MOUNTS.replace("/dev/sdb1 /data xfs rw,relatime 0 0\n", ""))
    fstat.collect()
    assert "/data" not in fstat.filesystems
    assert "fsstat./data.Blocks" not in context.gauges
    assert "fsstat./.Blocks" in context.gauges

def test_fsstat_skips_unreachable_mounts(context, proc_root):
    write_proc(proc_root, "proc/mounts", "/dev/sde1 /gone ext4 rw 0 0\n")
    fstat = FSStat(context, root=str(proc_root))
    fstat.collect()
    assert fstat.filesystems == {}
    assert fstat.by_usage() == []

def test_unescape_mount_point():
    assert unescape_mount_point("/mnt/my\\040disk") == "/mnt/my disk"
    assert unescape_mount_point("/data") == "/data"

def test_close_unregisters_everything(context, proc_root, clock):
    collectors = [cls(context, root=str(proc_root), clock=clock) for cls in COLLECTORS.values()]
    for c in collectors:
        c.collect()
    assert context.metrics()
    for c in collectors:
        c.close()
    assert context.metrics() == []

def test_missing_file_leaves_values(context, tmp_path, caplog):
    lstat = LoadStat(context, root=str(tmp_path))
    with pytest.raises(CollectorError):
        lstat.collect()
    with caplog.at_level(logging.WARNING):
        lstat.poll()
    assert math.isnan(lstat.one_minute.get())
    assert "proc/loadavg" in caplog.text
    # expected failures are logged without a traceback
    assert "Traceback" not in caplog.text

def test_poll_times_collection(context, proc_root):
    lstat = LoadStat(context, root=str(proc_root))
    lstat.poll()
    lstat.poll()
    assert len(lstat.collect_time.samples()) == 2
    assert "loadstat.CollectTime" in context.stats_timers

def test_poll_logs_collect_errors(context, proc_root, caplog):
    class Broken(LoadStat):
        def collect(self):
            raise RuntimeError("unreadable")

    stat = Broken(context, root=str(proc_root))
    with caplog.at_level(logging.ERROR):
        stat.poll()
    assert "unreadable" in caplog.text
    assert len(stat.collect_time.samples()) == 1

@pytest.mark.asyncio
async def test_collector_start_stop(context, proc_root):
    class Counting(LoadStat):
        calls = 0

        def collect(self):
            Counting.calls += 1
            super().collect()

    stat = Counting(context, step=0.01, root=str(proc_root))
    await stat.start()
    assert stat.running is True
    # collected once on start
    assert Counting.calls >= 1
    await asyncio.sleep(0.1)
    await stat.stop()
    assert stat.running is False
    assert Counting.calls > 1
    assert stat.one_minute.get() == 0.13

    calls = Counting.calls
    await asyncio.sleep(0.05)
    assert Counting.calls == calls

@pytest.mark.asyncio
async def test_collector_start_is_idempotent(context, proc_root):
    stat = LoadStat(context, step=10, root=str(proc_root))
    await stat.start()
    task = stat._task
    await stat.start()
    assert stat._task is task
    await stat.stop()
