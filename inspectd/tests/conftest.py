import pytest

from inspectd.metrics.clock import Clock
from inspectd.metrics.context import MetricContext

NS = 1_000_000_000

LOADAVG = "0.13 0.25 0.30 1/234 5678\n"
UPTIME = "1 4\n"
ENTROPY = "3012\n"
MEMINFO = """MemTotal:           2048 kB
MemFree:             512 kB
Buffers:             128 kB
Cached:              256 kB
Active(anon):        100 kB
SReclaimable:         64 kB
HugePages_Total:       0
Bogus:                 7 kB
"""
STAT_T0 = """cpu  100 0 50 850 0 0 0 0 0 0
cpu0 50 0 25 425 0 0 0 0 0 0
cpu1 50 0 25 425 0 0 0 0 0 0
intr 12345 1 2 3
ctxt 987654
"""
STAT_T1 = """cpu  300 0 150 1550 0 0 0 0 0 0
cpu0 150 0 75 775 0 0 0 0 0 0
cpu1 150 0 75 775 0 0 0 0 0 0
intr 12400 1 2 3
ctxt 987700
"""

DISKSTATS_T0 = """   1       0 ram0 0 0 0 0 0 0 0 0 0 0 0
   7       0 loop0 10 0 20 0 0 0 0 0 0 0 0
   8       0 sda 1000 10 20000 500 2000 20 40000 900 3 99000 150000
   8       1 sda1 900 10 18000 450 1900 20 38000 880 0 98000 140000
 253       0 dm-0 100 0 200 0 0 0 0 0 0 0 0
"""
DISKSTATS_T1 = """   1       0 ram0 0 0 0 0 0 0 0 0 0 0 0
   7       0 loop0 10 0 20 0 0 0 0 0 0 0 0
   8       0 sda 1100 10 22048 520 2000 20 40000 900 1 99500 151000 0 0 0 0
   8       1 sda1 1000 10 20048 470 1900 20 38000 880 0 98500 141000
 253       0 dm-0 100 0 200 0 0 0 0 0 0 0 0
"""
NET_DEV_T0 = """Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:    1000      10    0    0    0     0          0         0     1000      10    0    0    0     0       0          0
  eth0: 5000000    4000    1    0    0     0          0        12  2000000    3000    0    0    0     0       0          0
"""
NET_DEV_T1 = """Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:    1000      10    0    0    0     0          0         0     1000      10    0    0    0     0       0          0
  eth0: 17500000  12000    1    0    0     0          0        12  3250000    4000    0    0    0     0       2          0
"""
SNMP = """Ip: Forwarding DefaultTTL
Ip: 1 64
Tcp: RtoAlgorithm RtoMin RtoMax MaxConn ActiveOpens PassiveOpens AttemptFails EstabResets CurrEstab InSegs OutSegs RetransSegs InErrs OutRsts InCsumErrors
Tcp: 1 200 120000 -1 1500 300 12 40 45 900000 850000 120 0 77 0
Udp: InDatagrams NoPorts InErrors OutDatagrams RcvbufErrors SndbufErrors InCsumErrors
Udp: 250000 30 0 248067 0 0 0
UdpLite: InDatagrams NoPorts InErrors OutDatagrams RcvbufErrors SndbufErrors InCsumErrors
UdpLite: 0 0 0 0 0 0 0
"""
NETSTAT = """TcpExt: SyncookiesSent SyncookiesRecv SyncookiesFailed EmbryonicRsts ListenOverflows ListenDrops
TcpExt: 5 4 3 2 11 13
IpExt: InNoRoutes
IpExt: 0
"""
MOUNTS = """/dev/sda1 / ext4 rw,relatime 0 0
proc /proc proc rw,nosuid 0 0
tmpfs /run tmpfs rw,nosuid 0 0
/dev/sdb1 /data xfs rw,relatime 0 0
gvfsd-fuse /run/user/1000/gvfs fuse.gvfsd-fuse rw 0 0
/dev/sdc1 /mnt/my\\040disk ext4 rw 0 0
"""

@pytest.fixture
def clock():
    """A clock that only moves when the test advances it."""
    c = Clock()
    yield c
    c.stop()

@pytest.fixture
def context():
    return MetricContext("test")

def write_proc(root, relative: str, content: str):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path

@pytest.fixture
def proc_root(tmp_path):
    write_proc(tmp_path, "proc/loadavg", LOADAVG)
    write_proc(tmp_path, "proc/uptime", UPTIME)
    write_proc(tmp_path, "proc/sys/kernel/random/entropy_avail", ENTROPY)
    write_proc(tmp_path, "proc/meminfo", MEMINFO)
    write_proc(tmp_path, "proc/stat", STAT_T0)
    write_proc(tmp_path, "proc/diskstats", DISKSTATS_T0)
    for dev in ("ram0", "loop0", "dm-0"):
        (tmp_path / "sys/block" / dev).mkdir(parents=True)
    write_proc(tmp_path, "sys/block/sda/queue/hw_sector_size", "4096\n")
    write_proc(tmp_path, "proc/net/dev", NET_DEV_T0)
    write_proc(tmp_path, "sys/class/net/eth0/speed", "100\n")
    write_proc(tmp_path, "proc/net/snmp", SNMP)
    write_proc(tmp_path, "proc/net/netstat", NETSTAT)
    write_proc(tmp_path, "proc/mounts", MOUNTS)
    (tmp_path / "data").mkdir()
    (tmp_path / "mnt" / "my disk").mkdir(parents=True)
    return tmp_path
