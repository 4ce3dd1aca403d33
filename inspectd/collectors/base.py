import asyncio
import logging
import os
from typing import List, Optional

from inspectd.core.exceptions import CollectorError
from inspectd.interfaces.collector import ABCCollector
from inspectd.metrics.clock import Clock
from inspectd.metrics.context import MetricContext
from inspectd.metrics.group import MetricGroup
from inspectd.metrics.timer import MILLISECOND

logger = logging.getLogger(__name__)

COLLECT_TIMER_SAMPLES = 100

class PollingCollector(ABCCollector):
    """
    Base for collectors that poll a file under a (configurable) root every step.

    Subclasses set `prefix`, declare their metrics in __init__ through
    self.metrics and implement collect(). collect() raises CollectorError
    when its source cannot be read; metric values are then left untouched.
    """
    prefix: str = ""

    def __init__(self, context: MetricContext, step: float = 2.0, root: str = "/",
                 clock: Optional[Clock] = None, timer_samples: int = COLLECT_TIMER_SAMPLES):
        self.context = context
        self.step = step
        self.root = root
        self.clock = clock
        self.metrics = MetricGroup(context, self.prefix, clock=clock)
        self.collect_time = self.metrics.stats_timer("CollectTime", MILLISECOND, timer_samples)
        self.running = False
        self._task: Optional[asyncio.Task] = None

    def path(self, relative: str) -> str:
        return os.path.join(self.root, relative)

    def poll(self):
        """Run collect() once, timing it. Errors are logged, not raised."""
        try:
            with self.collect_time.time():
                self.collect()
        except CollectorError as e:
            logger.warning(f"{self.prefix}: {e}")
        except Exception as e:
            logger.error(f"Error collecting {self.prefix}: {e}", exc_info=True)

    async def start(self) -> None:
        if self.running:
            return
        self.running = True
        # collect once, then every step
        self.poll()
        self._task = asyncio.create_task(self._run())
        logger.info(f"{type(self).__name__} started (step: {self.step}s)")

    async def stop(self) -> None:
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info(f"{type(self).__name__} stopped")

    def close(self):
        """Unregister every metric this collector declared."""
        self.metrics.unregister()

    async def _run(self) -> None:
        while self.running:
            await asyncio.sleep(self.step)
            self.poll()

    def _read_lines(self, relative: str) -> List[str]:
        try:
            with open(self.path(relative)) as f:
                return f.readlines()
        except OSError as e:
            raise CollectorError(f"unable to read {self.path(relative)}: {e.strerror}") from e

    def _read_first_line(self, relative: str) -> str:
        lines = self._read_lines(relative)
        return lines[0].strip() if lines else ""
