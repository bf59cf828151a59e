"""Graphite plaintext line protocol encoding."""

from .line_protocol import LineEncoder, format_line, percentile_key

__all__ = ["LineEncoder", "format_line", "percentile_key"]
