import io
import json
import logging
import threading
from typing import Any, Callable, Dict, List, TextIO, Tuple

from inspectd.metrics.kinds import Metric, MetricKind

logger = logging.getLogger(__name__)

# Decides whether a metric is reported out by the JSON encoder
OutputFilter = Callable[[str, Any], bool]

def accept_all(name: str, metric: Any) -> bool:
    return True

class MetricContext:
    """
    Registry of metrics by name within a namespace.

    The context only owns the name -> metric association; values are mutated
    by whoever created the metric.
    """

    def __init__(self, namespace: str):
        self.namespace = namespace
        self._lock = threading.RLock()
        self._registry: Dict[MetricKind, Dict[str, Metric]] = {kind: {} for kind in MetricKind}
        self.output_filter: OutputFilter = accept_all

    @property
    def counters(self) -> Dict[str, Metric]:
        return self._snapshot(MetricKind.COUNTER)

    @property
    def basic_counters(self) -> Dict[str, Metric]:
        return self._snapshot(MetricKind.BASIC_COUNTER)

    @property
    def gauges(self) -> Dict[str, Metric]:
        return self._snapshot(MetricKind.GAUGE)

    @property
    def stats_timers(self) -> Dict[str, Metric]:
        return self._snapshot(MetricKind.STATS_TIMER)

    def register(self, metric: Any, name: str):
        mapping = self._mapping_for(metric)
        if mapping is None:
            logger.debug(f"Ignoring registration of unsupported type {type(metric).__name__} as {name}")
            return
        with self._lock:
            mapping[name] = metric

    def unregister(self, metric: Any, name: str):
        mapping = self._mapping_for(metric)
        if mapping is None:
            return
        with self._lock:
            mapping.pop(name, None)

    def metrics(self) -> List[Tuple[MetricKind, str, Metric]]:
        """All registered metrics in serialization order."""
        with self._lock:
            return [(kind, name, metric)
                    for kind in MetricKind
                    for name, metric in self._registry[kind].items()]

    def encode_json(self, writer: TextIO):
        """Stream every metric passing the output filter to writer as a JSON array."""
        writer.write("[")
        # JSON disallows a trailing comma
        prepend_comma = False
        for kind, name, metric in self.metrics():
            encoded = self._marshal_metric_json(kind, name, metric)
            if encoded is None:
                continue
            if prepend_comma:
                writer.write(",")
            writer.write(encoded)
            prepend_comma = True
        writer.write("]")

    def to_json(self) -> str:
        buf = io.StringIO()
        self.encode_json(buf)
        return buf.getvalue()

    def _marshal_metric_json(self, kind: MetricKind, name: str, metric: Metric):
        if not self.output_filter(name, metric):
            return None
        o = {"Type": kind.value, "Name": name, "Value": metric.marshal_value()}
        try:
            return json.dumps(o, allow_nan=False)
        except ValueError:
            # NaN/Infinity have no JSON representation (e.g. a gauge never set)
            logger.debug(f"Skipping {name}: value is not representable in JSON")
            return None

    def _mapping_for(self, metric: Any):
        if not isinstance(metric, Metric):
            return None
        return self._registry.get(getattr(metric, "kind", None))

    def _snapshot(self, kind: MetricKind) -> Dict[str, Metric]:
        with self._lock:
            return dict(self._registry[kind])

    def __repr__(self) -> str:
        return f"MetricContext(namespace={self.namespace!r})"
