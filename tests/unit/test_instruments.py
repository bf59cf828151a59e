"""
Unit tests for metric instruments and samples.
"""

import math

import pytest

from graphite_exporter.metrics import (
    EWMA,
    Counter,
    ExpDecaySample,
    Gauge,
    GaugeFloat,
    Histogram,
    HistogramSnapshot,
    Meter,
    MetricKind,
    Timer,
    UniformSample,
)


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestCounterAndGauges:
    """Test scalar instruments."""

    def test_counter(self):
        counter = Counter()
        counter.inc()
        counter.inc(5)
        counter.dec(2)
        assert counter.count() == 4
        assert counter.kind is MetricKind.COUNTER
        counter.clear()
        assert counter.count() == 0

    def test_gauge(self):
        gauge = Gauge()
        gauge.update(12)
        assert gauge.value() == 12
        assert gauge.kind is MetricKind.GAUGE

    def test_functional_gauge(self):
        items = [1, 2, 3]
        gauge = Gauge(lambda: len(items))
        assert gauge.value() == 3
        items.append(4)
        assert gauge.value() == 4
        with pytest.raises(TypeError):
            gauge.update(1)

    def test_gauge_float(self):
        gauge = GaugeFloat()
        gauge.update(0.25)
        assert gauge.value() == 0.25
        assert GaugeFloat(lambda: 2).value() == 2.0


class TestEWMA:
    """Test exponentially-weighted moving averages."""

    def test_first_tick_sets_instant_rate(self):
        ewma = EWMA.for_minutes(1)
        ewma.update(3)
        ewma.tick()
        assert ewma.rate() == pytest.approx(0.6)

    def test_decay_over_one_minute(self):
        ewma = EWMA.for_minutes(1)
        ewma.update(3)
        ewma.tick()
        for _ in range(12):
            ewma.tick()
        assert ewma.rate() == pytest.approx(0.6 * math.exp(-1))

    def test_longer_windows_decay_slower(self):
        m1, m15 = EWMA.for_minutes(1), EWMA.for_minutes(15)
        for ewma in (m1, m15):
            ewma.update(3)
            ewma.tick()
            ewma.tick()
        assert m15.rate() > m1.rate()


class TestMeter:
    """Test meters with a controlled clock."""

    def test_rates_after_one_tick(self):
        clock = FakeClock()
        meter = Meter(clock=clock)
        meter.mark(3)
        clock.advance(5)

        snapshot = meter.snapshot()
        assert snapshot.count == 3
        assert snapshot.rate1 == pytest.approx(0.6)
        assert snapshot.rate5 == pytest.approx(0.6)
        assert snapshot.rate15 == pytest.approx(0.6)
        assert snapshot.rate_mean == pytest.approx(0.6)

    def test_no_tick_before_interval(self):
        clock = FakeClock()
        meter = Meter(clock=clock)
        meter.mark(3)
        clock.advance(1)
        snapshot = meter.snapshot()
        assert snapshot.rate1 == 0.0
        assert snapshot.rate_mean == pytest.approx(3.0)

    def test_zero_elapsed_mean_rate(self):
        meter = Meter(clock=FakeClock())
        meter.mark()
        assert meter.snapshot().rate_mean == 0.0


class TestSamples:
    """Test reservoir samples."""

    def test_uniform_sample_keeps_everything_below_capacity(self):
        sample = UniformSample(reservoir_size=100, seed=1)
        for v in range(10):
            sample.update(v)
        assert sorted(sample.values()) == list(range(10))
        assert sample.count() == 10

    def test_uniform_sample_is_bounded(self):
        sample = UniformSample(reservoir_size=10, seed=1)
        for v in range(1000):
            sample.update(v)
        assert sample.size() == 10
        assert sample.count() == 1000
        assert all(0 <= v < 1000 for v in sample.values())

    def test_exp_decay_sample_is_bounded(self):
        clock = FakeClock()
        sample = ExpDecaySample(reservoir_size=100, alpha=0.99, clock=clock, seed=1)
        for v in range(1000):
            sample.update(v)
        assert sample.size() == 100
        assert sample.count() == 1000

    def test_exp_decay_sample_rescales(self):
        clock = FakeClock()
        sample = ExpDecaySample(reservoir_size=10, clock=clock, seed=1)
        for v in range(10):
            sample.update(v)
        clock.advance(60 * 60 + 1)
        sample.update(99)
        assert sample.size() == 10
        assert 99 in sample.values()

    def test_exp_decay_sample_favours_recent_values(self):
        clock = FakeClock()
        sample = ExpDecaySample(reservoir_size=10, alpha=0.5, clock=clock, seed=3)
        for v in range(10):
            sample.update(v)
        clock.advance(60)
        for v in range(100, 110):
            sample.update(v)
        assert sorted(sample.values()) == list(range(100, 110))

    def test_clear(self):
        sample = UniformSample(reservoir_size=10)
        sample.update(1)
        sample.clear()
        assert sample.count() == 0
        assert sample.values() == []

    def test_invalid_reservoir_size(self):
        with pytest.raises(ValueError):
            UniformSample(reservoir_size=0)


class TestHistogramSnapshot:
    """Test distribution statistics."""

    def test_statistics(self):
        snapshot = HistogramSnapshot(count=8, values=(2, 4, 4, 4, 5, 5, 7, 9))
        assert snapshot.min() == 2
        assert snapshot.max() == 9
        assert snapshot.mean() == pytest.approx(5.0)
        assert snapshot.std_dev() == pytest.approx(2.0)
        assert snapshot.variance() == pytest.approx(4.0)
        assert snapshot.sum() == 40

    def test_percentiles_interpolate(self):
        snapshot = HistogramSnapshot(count=100, values=tuple(range(1, 101)))
        p50, p75, p99 = snapshot.percentiles([0.5, 0.75, 0.99])
        assert p50 == pytest.approx(50.5)
        assert p75 == pytest.approx(75.75)
        assert p99 == pytest.approx(99.99)

    def test_percentiles_clamp_to_extremes(self):
        snapshot = HistogramSnapshot(count=3, values=(10, 20, 30))
        assert snapshot.percentile(0.0) == 10.0
        assert snapshot.percentile(1.0) == 30.0

    def test_empty_snapshot(self):
        snapshot = HistogramSnapshot(count=0)
        assert snapshot.min() == 0
        assert snapshot.max() == 0
        assert snapshot.mean() == 0.0
        assert snapshot.std_dev() == 0.0
        assert snapshot.percentiles([0.5, 0.99]) == (0.0, 0.0)
        assert snapshot.percentiles([]) == ()


class TestHistogramAndTimer:
    """Test composite instruments."""

    def test_histogram(self):
        histogram = Histogram()
        for v in (1, 2, 3):
            histogram.update(v)
        snapshot = histogram.snapshot()
        assert histogram.kind is MetricKind.HISTOGRAM
        assert snapshot.count == 3
        assert snapshot.max() == 3

    def test_timer_update(self):
        timer = Timer(histogram=Histogram(UniformSample()), meter=Meter(clock=FakeClock()))
        timer.update(1_000_000)
        timer.update(3_000_000)
        snapshot = timer.snapshot()
        assert timer.kind is MetricKind.TIMER
        assert snapshot.count == 2
        assert snapshot.min() == 1_000_000
        assert snapshot.mean() == pytest.approx(2_000_000)
        assert snapshot.meter.count == 2

    def test_timer_time_returns_result(self):
        timer = Timer()
        assert timer.time(lambda a, b: a + b, 2, b=3) == 5
        assert timer.count() == 1
        assert timer.snapshot().min() >= 0

    def test_timer_context_records_on_error(self):
        timer = Timer()
        with pytest.raises(RuntimeError):
            with timer.timing():
                raise RuntimeError("boom")
        assert timer.count() == 1
