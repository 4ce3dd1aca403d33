import os
from dataclasses import dataclass, field
from typing import List

from inspectd.core.exceptions import ConfigurationError

ENV_PREFIX = "INSPECTD_"

DEFAULT_COLLECTORS = (
    "cpustat", "memstat", "loadstat", "uptimestat", "entropystat",
    "diskstat", "interfacestat", "netstat", "fsstat",
)

@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"

@dataclass
class ClockConfig:
    jiffy: float = 0.1 # seconds between clock refreshes

@dataclass
class CollectorConfig:
    step: float = 2.0 # seconds between polls
    proc_root: str = "/"
    enabled: List[str] = field(default_factory=lambda: list(DEFAULT_COLLECTORS))
    timer_samples: int = 100

@dataclass
class ServerConfig:
    enabled: bool = False
    address: str = ":19999"
    path: str = "/api/v1/metrics.json"

@dataclass
class ReportConfig:
    batchmode: bool = False
    iterations: int = 0 # 0 = run forever

@dataclass
class Config:
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    clock: ClockConfig = field(default_factory=ClockConfig)
    collectors: CollectorConfig = field(default_factory=CollectorConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    @classmethod
    def load(cls) -> "Config":
        """Defaults, overridden by INSPECTD_* environment variables."""
        config = cls()
        env = os.environ

        if ENV_PREFIX + "LOG_LEVEL" in env:
            config.logging.level = env[ENV_PREFIX + "LOG_LEVEL"].upper()
        if ENV_PREFIX + "LOG_FORMAT" in env:
            config.logging.format = env[ENV_PREFIX + "LOG_FORMAT"]
        if ENV_PREFIX + "STEP" in env:
            config.collectors.step = _parse_number(ENV_PREFIX + "STEP", env[ENV_PREFIX + "STEP"])
        if ENV_PREFIX + "PROC_ROOT" in env:
            config.collectors.proc_root = env[ENV_PREFIX + "PROC_ROOT"]
        if ENV_PREFIX + "COLLECTORS" in env:
            config.collectors.enabled = [c.strip() for c in env[ENV_PREFIX + "COLLECTORS"].split(",") if c.strip()]
        if ENV_PREFIX + "ADDRESS" in env:
            config.server.address = env[ENV_PREFIX + "ADDRESS"]
        if ENV_PREFIX + "SERVER" in env:
            config.server.enabled = env[ENV_PREFIX + "SERVER"].lower() in ("1", "true", "yes")

        config.validate()
        return config

    def validate(self):
        if self.collectors.step <= 0:
            raise ConfigurationError(f"step must be positive, got {self.collectors.step}")
        if self.clock.jiffy <= 0:
            raise ConfigurationError(f"jiffy must be positive, got {self.clock.jiffy}")
        if self.collectors.timer_samples < 1:
            raise ConfigurationError(f"timer_samples must be at least 1, got {self.collectors.timer_samples}")
        if self.report.iterations < 0:
            raise ConfigurationError(f"iterations must not be negative, got {self.report.iterations}")
        if self.logging.format not in ("json", "text"):
            raise ConfigurationError(f"unknown log format: {self.logging.format}")

def _parse_number(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None
