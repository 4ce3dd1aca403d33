import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from inspectd.collectors import COLLECTORS, CPUStat, DiskStat, FSStat, InterfaceStat, MemStat
from inspectd.collectors.base import PollingCollector
from inspectd.core.config import Config
from inspectd.core.exceptions import ConfigurationError
from inspectd.core.logging import setup_logging
from inspectd.metrics.clock import Clock, set_clock
from inspectd.metrics.context import MetricContext
from inspectd.report.formatter import disk_report, filesystem_report, format_metrics, interface_report, summarize
from inspectd.server.http import start_server

logger = logging.getLogger("main")

NOTES = "All CPU percentages are normalized to total number of logical cpus"

# collector type -> report section for it
SECTIONS = (
    (DiskStat, disk_report),
    (FSStat, filesystem_report),
    (InterfaceStat, interface_report),
)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inspectd", description="Host metrics collection agent", epilog=NOTES)
    parser.add_argument("-b", "--batchmode", action="store_true", default=None,
                        help="Run in batch mode; suitable for parsing")
    parser.add_argument("-n", "--iterations", type=int, default=None,
                        help="Quit after these many iterations")
    parser.add_argument("--server", action="store_true", default=None,
                        help="Runs continuously and exposes metrics as JSON on HTTP")
    parser.add_argument("--address", type=str, default=None,
                        help="address to listen on for http if running in server mode")
    parser.add_argument("--step", type=float, default=None,
                        help="metrics are collected every step seconds")
    parser.add_argument("--log-level", type=str, default=None, help="logging level")
    return parser

def apply_args(config: Config, args: argparse.Namespace) -> Config:
    if args.batchmode is not None:
        config.report.batchmode = args.batchmode
    if args.iterations is not None:
        config.report.iterations = args.iterations
    if args.server is not None:
        config.server.enabled = args.server
    if args.address is not None:
        config.server.address = args.address
    if args.step is not None:
        config.collectors.step = args.step
    if args.log_level is not None:
        config.logging.level = args.log_level.upper()
    if config.server.enabled:
        config.report.batchmode = True
    config.validate()
    return config

def build_collectors(config: Config, context: MetricContext) -> List[PollingCollector]:
    collectors = []
    for name in config.collectors.enabled:
        cls = COLLECTORS.get(name)
        if cls is None:
            raise ConfigurationError(f"unknown collector: {name}")
        collectors.append(cls(context, step=config.collectors.step, root=config.collectors.proc_root,
                              timer_samples=config.collectors.timer_samples))
    return collectors

def report(context: MetricContext, collectors: List[PollingCollector], batchmode: bool) -> List[str]:
    lines = []
    cstat = next((c for c in collectors if isinstance(c, CPUStat)), None)
    mstat = next((c for c in collectors if isinstance(c, MemStat)), None)
    problems = []
    if cstat and mstat:
        summary, problems = summarize(cstat, mstat)
        lines.append(summary)
    for cls, section in SECTIONS:
        stat = next((c for c in collectors if isinstance(c, cls)), None)
        if stat is not None:
            section_lines, section_problems = section(stat)
            lines.extend(section_lines)
            problems.extend(section_problems)
    if batchmode:
        lines.extend(format_metrics(context))
    for problem in problems:
        lines.append(f"Problem: {problem}")
    return lines

async def run(config: Config, stop_event: Optional[asyncio.Event] = None) -> MetricContext:
    stop_event = stop_event or asyncio.Event()

    clock = Clock(jiffy=config.clock.jiffy)
    clock.start()
    previous_clock = set_clock(clock)

    # Initialize a metric context
    context = MetricContext("system")
    collectors: List[PollingCollector] = []

    runner = None
    try:
        collectors = build_collectors(config, context)
        for collector in collectors:
            await collector.start()

        if config.server.enabled:
            runner = await start_server(context, config.server.address, config.server.path)

        if not config.report.batchmode:
            print("Gathering statistics......")

        iterations_run = 0
        while not stop_event.is_set():
            iterations_run += 1
            if config.report.iterations > 0 and iterations_run > config.report.iterations:
                break
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=config.collectors.step)
                break
            except asyncio.TimeoutError:
                pass
            if not config.report.batchmode:
                print("\033[2J\033[H", end="") # clear screen, cursor top left
            for line in report(context, collectors, config.report.batchmode):
                print(line)
            sys.stdout.flush()
    finally:
        for collector in collectors:
            await collector.stop()
            collector.close()
        if runner:
            await runner.cleanup()
        clock.stop()
        set_clock(previous_clock)
        logger.info("inspectd stopped")
    return context

async def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)
    try:
        config = apply_args(Config.load(), args)
    except ConfigurationError as e:
        print(f"inspectd: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(level=config.logging.level, fmt=config.logging.format)
    logger.info("Starting inspectd...")

    # Handle graceful shutdown
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    def stop_all():
        logger.info("Stopping...")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_all)

    await run(config, stop_event)

def cli():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    cli()
