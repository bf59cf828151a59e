"""Thread-safe registry of named metric instruments."""

import logging
import threading
from typing import Any, Callable, Dict, Iterator, List, Optional

from .instruments import Counter, Gauge, GaugeFloat, Histogram, Meter, Timer

logger = logging.getLogger(__name__)


class DuplicateMetricError(ValueError):
    """Raised when a name is registered twice."""
    pass


class Registry:
    """In-process collection of named, live-updating metrics.

    The exporter only needs :meth:`each`; everything else is for the host
    process that owns and updates the metrics.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._metrics: Dict[str, Any] = {}

    def register(self, name: str, metric: Any) -> Any:
        """Register ``metric`` under ``name``.

        Raises:
            DuplicateMetricError: If the name is already taken
        """
        with self._lock:
            if name in self._metrics:
                raise DuplicateMetricError(f"Duplicate metric: {name}")
            self._metrics[name] = metric
        logger.debug(f"Registered metric {name} ({type(metric).__name__})")
        return metric

    def get(self, name: str) -> Optional[Any]:
        with self._lock:
            return self._metrics.get(name)

    def get_or_register(self, name: str, factory: Callable[[], Any]) -> Any:
        """Return the metric named ``name``, creating it with ``factory`` if absent."""
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = factory()
                self._metrics[name] = metric
                logger.debug(f"Registered metric {name} ({type(metric).__name__})")
            return metric

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def unregister_all(self) -> None:
        with self._lock:
            self._metrics.clear()

    def each(self, visitor: Callable[[str, Any], None]) -> None:
        """Call ``visitor(name, metric)`` for every registered metric.

        Iterates over a copy taken under the lock, so metrics may be
        registered or updated concurrently.
        """
        with self._lock:
            items = list(self._metrics.items())
        for name, metric in items:
            visitor(name, metric)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._metrics)

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._metrics

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    # Typed accessors

    def counter(self, name: str) -> Counter:
        return self.get_or_register(name, Counter)

    def gauge(self, name: str, func: Optional[Callable[[], int]] = None) -> Gauge:
        return self.get_or_register(name, lambda: Gauge(func))

    def gauge_float(self, name: str, func: Optional[Callable[[], float]] = None) -> GaugeFloat:
        return self.get_or_register(name, lambda: GaugeFloat(func))

    def histogram(self, name: str) -> Histogram:
        return self.get_or_register(name, Histogram)

    def meter(self, name: str) -> Meter:
        return self.get_or_register(name, Meter)

    def timer(self, name: str) -> Timer:
        return self.get_or_register(name, Timer)
