"""Graphite plaintext line encoding of registry snapshots.

Each metric field becomes one ``<path> <value> <timestamp>\\n`` line. Every
line of a cycle carries the same timestamp.
"""

import logging
import math
from typing import Any, List, Sequence

import numpy as np

from ..core.config import ExportConfig, TIMER_PERCENTILE_SUFFIX
from ..metrics.models import MetricKind

logger = logging.getLogger(__name__)


def percentile_key(fraction: float) -> str:
    """Name fragment for a percentile: 0.5 -> "50", 0.999 -> "999".

    The fraction is scaled by 100, rendered as the shortest positional
    decimal, and the first decimal point is dropped.
    """
    rendered = np.format_float_positional(fraction * 100.0, trim="-")
    return rendered.replace(".", "", 1)


def format_line(path: str, value: str, timestamp: int) -> str:
    return f"{path} {value} {timestamp}\n"


def _format_float(value: float, spec: str) -> str:
    """Format a float, spelling non-finite values as NaN, +Inf and -Inf."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return format(value, spec)


def _trunc_div(value: int, divisor: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(value) // abs(divisor)
    return quotient if (value >= 0) == (divisor > 0) else -quotient


class LineEncoder:
    """Converts metrics into plaintext protocol lines for one configuration."""

    def __init__(self, config: ExportConfig):
        self.prefix = config.prefix
        self.percentiles: Sequence[float] = config.percentiles
        self.duration_unit = int(config.duration_unit)
        self.histogram_percentile_suffix = config.histogram_percentile_suffix
        self._percentile_keys = [percentile_key(p) for p in self.percentiles]

    def path(self, name: str, suffix: str = "") -> str:
        base = f"{self.prefix}.{name}" if self.prefix else name
        return f"{base}.{suffix}" if suffix else base

    def encode(self, registry: Any, now: int) -> List[str]:
        """Encode every metric in ``registry`` at timestamp ``now``."""
        lines: List[str] = []

        def visit(name: str, metric: Any) -> None:
            lines.extend(self.encode_metric(name, metric, now))

        registry.each(visit)
        return lines

    def encode_bytes(self, registry: Any, now: int) -> bytes:
        return "".join(self.encode(registry, now)).encode("utf-8")

    def encode_metric(self, name: str, metric: Any, now: int) -> List[str]:
        """Lines for a single metric; unknown kinds yield no lines."""
        kind = getattr(metric, "kind", None)

        if kind is MetricKind.COUNTER:
            return [format_line(self.path(name), f"{int(metric.count())}", now)]

        elif kind is MetricKind.GAUGE:
            return [format_line(self.path(name), f"{int(metric.value())}", now)]

        elif kind is MetricKind.GAUGE_FLOAT:
            return [format_line(self.path(name), _format_float(float(metric.value()), "f"), now)]

        elif kind is MetricKind.HISTOGRAM:
            return self._encode_histogram(name, metric.snapshot(), now)

        elif kind is MetricKind.METER:
            return self._encode_meter(name, metric.snapshot(), now)

        elif kind is MetricKind.TIMER:
            return self._encode_timer(name, metric.snapshot(), now)

        logger.debug(f"Skipping metric {name}: unsupported type {type(metric).__name__}")
        return []

    def _encode_histogram(self, name: str, h: Any, now: int) -> List[str]:
        ps = h.percentiles(self.percentiles)
        lines = [
            format_line(self.path(name, "count"), f"{int(h.count)}", now),
            format_line(self.path(name, "min"), f"{int(h.min())}", now),
            format_line(self.path(name, "max"), f"{int(h.max())}", now),
            format_line(self.path(name, "mean"), _format_float(h.mean(), ".2f"), now),
            format_line(self.path(name, "std-dev"), _format_float(h.std_dev(), ".2f"), now),
        ]
        for key, value in zip(self._percentile_keys, ps):
            suffix = f"{key}-{self.histogram_percentile_suffix}"
            lines.append(format_line(self.path(name, suffix), _format_float(value, ".2f"), now))
        return lines

    def _encode_meter(self, name: str, m: Any, now: int) -> List[str]:
        return [
            format_line(self.path(name, "count"), f"{int(m.count)}", now),
            format_line(self.path(name, "one-minute"), _format_float(m.rate1, ".2f"), now),
            format_line(self.path(name, "five-minute"), _format_float(m.rate5, ".2f"), now),
            format_line(self.path(name, "fifteen-minute"), _format_float(m.rate15, ".2f"), now),
            format_line(self.path(name, "mean"), _format_float(m.rate_mean, ".2f"), now),
        ]

    def _encode_timer(self, name: str, t: Any, now: int) -> List[str]:
        du = self.duration_unit
        fdu = float(du)
        ps = t.percentiles(self.percentiles)
        lines = [
            format_line(self.path(name, "count"), f"{int(t.count)}", now),
            format_line(self.path(name, "min"), f"{_trunc_div(int(t.min()), du)}", now),
            format_line(self.path(name, "max"), f"{_trunc_div(int(t.max()), du)}", now),
            format_line(self.path(name, "mean"), _format_float(t.mean() / fdu, ".2f"), now),
            format_line(self.path(name, "std-dev"), _format_float(t.std_dev() / fdu, ".2f"), now),
        ]
        for key, value in zip(self._percentile_keys, ps):
            suffix = f"{key}-{TIMER_PERCENTILE_SUFFIX}"
            lines.append(format_line(self.path(name, suffix), _format_float(value / fdu, ".2f"), now))
        lines.extend([
            format_line(self.path(name, "one-minute"), _format_float(t.rate1, ".2f"), now),
            format_line(self.path(name, "five-minute"), _format_float(t.rate5, ".2f"), now),
            format_line(self.path(name, "fifteen-minute"), _format_float(t.rate15, ".2f"), now),
            format_line(self.path(name, "mean-rate"), _format_float(t.rate_mean, ".2f"), now),
        ])
        return lines
