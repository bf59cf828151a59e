"""Network transport to the collector."""

from .tcp import TcpTransport

__all__ = ["TcpTransport"]
