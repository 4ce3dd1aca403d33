from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

UINT64_MASK = (1 << 64) - 1

class MetricKind(Enum):
    # Declaration order is the order kinds are serialized in.
    COUNTER = "Counter"
    BASIC_COUNTER = "BasicCounter"
    GAUGE = "Gauge"
    STATS_TIMER = "StatsTimer"

class Metric(ABC):
    """
    Common capability of every metric type that a MetricContext can hold.
    """
    kind: MetricKind

    @abstractmethod
    def reset(self) -> None:
        """Return the metric to its freshly constructed state."""
        pass

    @abstractmethod
    def marshal_value(self) -> Any:
        """JSON-compatible representation of the current value."""
        pass

def to_uint64(v: int) -> int:
    return int(v) & UINT64_MASK
