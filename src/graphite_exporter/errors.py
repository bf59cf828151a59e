"""Exception hierarchy for the exporter."""


class GraphiteExporterError(Exception):
    """Base class for exporter errors."""
    pass


class TransportError(GraphiteExporterError):
    """Raised when a cycle cannot connect to or write to the collector."""
    pass


class ConfigurationError(GraphiteExporterError, ValueError):
    """Raised when exporter configuration validation fails."""
    pass
