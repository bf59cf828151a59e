"""In-process metric instruments.

Every instrument is safe to update from multiple threads and exposes a
``kind`` attribute from the closed :class:`MetricKind` set, which is what the
line encoder dispatches on.
"""

import math
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .models import HistogramSnapshot, MeterSnapshot, MetricKind, TimerSnapshot
from .sample import ExpDecaySample, Sample, UniformSample

# EWMA tick interval in seconds
TICK_INTERVAL_S = 5.0


class Counter:
    """Integer counter."""

    kind = MetricKind.COUNTER

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    def clear(self) -> None:
        with self._lock:
            self._count = 0

    def count(self) -> int:
        with self._lock:
            return self._count

    def snapshot(self) -> int:
        return self.count()


class Gauge:
    """Integer gauge, optionally backed by a callable (functional gauge)."""

    kind = MetricKind.GAUGE

    def __init__(self, func: Optional[Callable[[], int]] = None) -> None:
        self._lock = threading.Lock()
        self._value = 0
        self._func = func

    def update(self, value: int) -> None:
        if self._func is not None:
            raise TypeError("Cannot update a functional gauge")
        with self._lock:
            self._value = int(value)

    def value(self) -> int:
        if self._func is not None:
            return int(self._func())
        with self._lock:
            return self._value

    def snapshot(self) -> int:
        return self.value()


class GaugeFloat:
    """Float gauge, optionally backed by a callable (functional gauge)."""

    kind = MetricKind.GAUGE_FLOAT

    def __init__(self, func: Optional[Callable[[], float]] = None) -> None:
        self._lock = threading.Lock()
        self._value = 0.0
        self._func = func

    def update(self, value: float) -> None:
        if self._func is not None:
            raise TypeError("Cannot update a functional gauge")
        with self._lock:
            self._value = float(value)

    def value(self) -> float:
        if self._func is not None:
            return float(self._func())
        with self._lock:
            return self._value

    def snapshot(self) -> float:
        return self.value()


class EWMA:
    """Exponentially-weighted moving average of an event rate.

    Expects :meth:`tick` to be called every ``TICK_INTERVAL_S`` seconds;
    :class:`Meter` does so lazily whenever it is marked or read.
    """

    def __init__(self, alpha: float) -> None:
        self.alpha = alpha
        self._lock = threading.Lock()
        self._uncounted = 0
        self._rate = 0.0
        self._initialized = False

    @classmethod
    def for_minutes(cls, minutes: float) -> "EWMA":
        return cls(1.0 - math.exp(-TICK_INTERVAL_S / 60.0 / minutes))

    def update(self, n: int) -> None:
        with self._lock:
            self._uncounted += n

    def tick(self) -> None:
        with self._lock:
            instant_rate = self._uncounted / TICK_INTERVAL_S
            self._uncounted = 0
            if self._initialized:
                self._rate += self.alpha * (instant_rate - self._rate)
            else:
                self._rate = instant_rate
                self._initialized = True

    def rate(self) -> float:
        """Current rate in events per second."""
        with self._lock:
            return self._rate


class Meter:
    """Counts events and tracks their 1, 5 and 15-minute and mean rates."""

    kind = MetricKind.METER

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._count = 0
        self._start = clock()
        self._last_tick = self._start
        self._m1 = EWMA.for_minutes(1)
        self._m5 = EWMA.for_minutes(5)
        self._m15 = EWMA.for_minutes(15)

    def mark(self, n: int = 1) -> None:
        with self._lock:
            self._tick_if_necessary()
            self._count += n
            self._m1.update(n)
            self._m5.update(n)
            self._m15.update(n)

    def _tick_if_necessary(self) -> None:
        now = self._clock()
        age = now - self._last_tick
        if age < TICK_INTERVAL_S:
            return
        ticks = int(age // TICK_INTERVAL_S)
        self._last_tick += ticks * TICK_INTERVAL_S
        for _ in range(ticks):
            self._m1.tick()
            self._m5.tick()
            self._m15.tick()

    def count(self) -> int:
        with self._lock:
            return self._count

    def snapshot(self) -> MeterSnapshot:
        with self._lock:
            self._tick_if_necessary()
            elapsed = self._clock() - self._start
            rate_mean = self._count / elapsed if elapsed > 0 else 0.0
            return MeterSnapshot(
                count=self._count,
                rate1=self._m1.rate(),
                rate5=self._m5.rate(),
                rate15=self._m15.rate(),
                rate_mean=rate_mean,
            )


class Histogram:
    """Distribution of integer observations over a reservoir sample."""

    kind = MetricKind.HISTOGRAM

    def __init__(self, sample: Optional[Sample] = None) -> None:
        self.sample = sample if sample is not None else UniformSample()

    def update(self, value: int) -> None:
        self.sample.update(int(value))

    def clear(self) -> None:
        self.sample.clear()

    def count(self) -> int:
        return self.sample.count()

    def snapshot(self) -> HistogramSnapshot:
        return self.sample.snapshot()


class Timer:
    """Histogram of durations in nanoseconds plus a meter of their rate."""

    kind = MetricKind.TIMER

    def __init__(
        self,
        histogram: Optional[Histogram] = None,
        meter: Optional[Meter] = None,
    ) -> None:
        self.histogram = histogram if histogram is not None else Histogram(ExpDecaySample())
        self.meter = meter if meter is not None else Meter()

    def update(self, duration_ns: int) -> None:
        self.histogram.update(duration_ns)
        self.meter.mark(1)

    def update_since(self, start_ns: int) -> None:
        """Record the time elapsed since ``start_ns`` (a ``time.perf_counter_ns()`` reading)."""
        self.update(time.perf_counter_ns() - start_ns)

    def time(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        with self.timing():
            return func(*args, **kwargs)

    @contextmanager
    def timing(self) -> Iterator[None]:
        start = time.perf_counter_ns()
        try:
            yield
        finally:
            self.update_since(start)

    def count(self) -> int:
        return self.histogram.count()

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            histogram=self.histogram.snapshot(),
            meter=self.meter.snapshot(),
        )
