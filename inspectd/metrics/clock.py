"""
Process-wide low resolution clock.

Rate computation needs a timestamp on every Counter.set/add. Instead of asking
the OS each time, a daemon thread refreshes a cached elapsed-nanoseconds value
once per jiffy and every reader just loads that value.
"""
import logging
import threading
import time
from typing import Optional

logger = logging.getLogger(__name__)

JIFFY = 0.1 # seconds
NS_IN_SEC = 1e9

class Clock:
    def __init__(self, jiffy: float = JIFFY):
        self.jiffy = jiffy
        self._start = time.monotonic_ns()
        # Plain int rebinding is atomic under the GIL; readers never lock.
        self._ticks = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="inspectd-clock", daemon=True)
        self._thread.start()
        logger.debug(f"Clock started (jiffy: {self.jiffy}s)")

    def stop(self):
        """Halt the ticker. The current value is kept and may be advanced by hand."""
        self._stop_event.set()
        if self._thread:
            self._thread.join()
            self._thread = None
        logger.debug("Clock stopped")

    def now(self) -> int:
        """Nanoseconds elapsed since the clock was created, at jiffy resolution."""
        return self._ticks

    def advance(self, ns: int):
        """Move a stopped clock forward by ns nanoseconds."""
        if self.running:
            # the ticker would race with the read-modify-write below
            raise RuntimeError("cannot advance a running clock, stop() it first")
        if ns < 0:
            raise ValueError(f"clock cannot move backwards (advance by {ns}ns)")
        self._ticks += int(ns)

    def _run(self):
        while not self._stop_event.wait(self.jiffy):
            elapsed = time.monotonic_ns() - self._start
            # advance() may have pushed the value past real time
            if elapsed > self._ticks:
                self._ticks = elapsed

_clock: Optional[Clock] = None
_clock_lock = threading.Lock()

def get_clock() -> Clock:
    """Return the process clock, creating and starting it on first use."""
    global _clock
    with _clock_lock:
        if _clock is None:
            _clock = Clock()
            _clock.start()
        return _clock

def set_clock(clock: Optional[Clock]) -> Optional[Clock]:
    """Install clock as the process clock. Returns the previous one."""
    global _clock
    with _clock_lock:
        previous = _clock
        _clock = clock
        return previous
