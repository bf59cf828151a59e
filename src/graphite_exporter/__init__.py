"""Periodic exporter of in-process metrics to Graphite."""

from .core import (
    DEFAULT_PERCENTILES,
    ExportConfig,
    GraphiteExporter,
    default_config,
    graphite,
    graphite_once,
    graphite_with_config,
    start_in_thread,
)
from .errors import ConfigurationError, GraphiteExporterError, TransportError
from .metrics import Counter, Gauge, GaugeFloat, Histogram, Meter, Registry, Timer

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "Counter",
    "DEFAULT_PERCENTILES",
    "ExportConfig",
    "Gauge",
    "GaugeFloat",
    "GraphiteExporter",
    "GraphiteExporterError",
    "Histogram",
    "Meter",
    "Registry",
    "Timer",
    "TransportError",
    "default_config",
    "graphite",
    "graphite_once",
    "graphite_with_config",
    "start_in_thread",
]
