"""Data models for metric snapshots."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Tuple

import numpy as np


class MetricKind(Enum):
    """Closed set of metric kinds the exporter knows how to encode."""

    COUNTER = "counter"
    GAUGE = "gauge"
    GAUGE_FLOAT = "gauge_float"
    HISTOGRAM = "histogram"
    METER = "meter"
    TIMER = "timer"


@dataclass(frozen=True)
class HistogramSnapshot:
    """Immutable point-in-time view of a sampled distribution.

    ``count`` is the total number of updates ever seen by the histogram, while
    ``values`` only holds what the reservoir currently retains.
    """

    count: int
    values: Tuple[int, ...] = field(default_factory=tuple)

    def min(self) -> int:
        if not self.values:
            return 0
        return int(min(self.values))

    def max(self) -> int:
        if not self.values:
            return 0
        return int(max(self.values))

    def sum(self) -> int:
        return int(sum(self.values))

    def mean(self) -> float:
        if not self.values:
            return 0.0
        return float(np.mean(self.values))

    def variance(self) -> float:
        if not self.values:
            return 0.0
        return float(np.var(self.values))

    def std_dev(self) -> float:
        if not self.values:
            return 0.0
        return float(np.std(self.values))

    def percentile(self, fraction: float) -> float:
        return self.percentiles([fraction])[0]

    def percentiles(self, fractions: Sequence[float]) -> Tuple[float, ...]:
        """Percentiles at the requested fractions (0.0-1.0).

        Positions are interpolated at ``p * (n + 1)`` and clamped to the
        smallest and largest sampled value.
        """
        if not fractions:
            return ()
        if not self.values:
            return tuple(0.0 for _ in fractions)
        scores = np.percentile(
            np.asarray(self.values, dtype=np.float64),
            [p * 100.0 for p in fractions],
            method="weibull",
        )
        return tuple(float(s) for s in scores)


@dataclass(frozen=True)
class MeterSnapshot:
    """Immutable view of a meter's count and rates (events per second)."""

    count: int
    rate1: float = 0.0
    rate5: float = 0.0
    rate15: float = 0.0
    rate_mean: float = 0.0


@dataclass(frozen=True)
class TimerSnapshot:
    """Duration histogram (nanoseconds) combined with a meter."""

    histogram: HistogramSnapshot
    meter: MeterSnapshot

    @property
    def count(self) -> int:
        return self.histogram.count

    def min(self) -> int:
        return self.histogram.min()

    def max(self) -> int:
        return self.histogram.max()

    def mean(self) -> float:
        return self.histogram.mean()

    def std_dev(self) -> float:
        return self.histogram.std_dev()

    def percentiles(self, fractions: Sequence[float]) -> Tuple[float, ...]:
        return self.histogram.percentiles(fractions)

    @property
    def rate1(self) -> float:
        return self.meter.rate1

    @property
    def rate5(self) -> float:
        return self.meter.rate5

    @property
    def rate15(self) -> float:
        return self.meter.rate15

    @property
    def rate_mean(self) -> float:
        return self.meter.rate_mean
