"""Export configuration and the exporter loop."""

from .config import DEFAULT_PERCENTILES, ExportConfig, default_config
from .exporter import GraphiteExporter, graphite, graphite_once, graphite_with_config, start_in_thread

__all__ = [
    "DEFAULT_PERCENTILES",
    "ExportConfig",
    "GraphiteExporter",
    "default_config",
    "graphite",
    "graphite_once",
    "graphite_with_config",
    "start_in_thread",
]
