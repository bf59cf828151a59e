"""In-process metric instruments and registry."""

from .instruments import EWMA, Counter, Gauge, GaugeFloat, Histogram, Meter, Timer
from .models import HistogramSnapshot, MeterSnapshot, MetricKind, TimerSnapshot
from .registry import DuplicateMetricError, Registry
from .sample import ExpDecaySample, UniformSample

__all__ = [
    "Counter",
    "DuplicateMetricError",
    "EWMA",
    "ExpDecaySample",
    "Gauge",
    "GaugeFloat",
    "Histogram",
    "HistogramSnapshot",
    "Meter",
    "MeterSnapshot",
    "MetricKind",
    "Registry",
    "Timer",
    "TimerSnapshot",
    "UniformSample",
]
