"""Reservoir samples backing histograms and timers."""

import heapq
import logging
import math
import threading
import time
from itertools import count as _sequence
from typing import Callable, List, Optional, Tuple

import numpy as np

from .models import HistogramSnapshot

logger = logging.getLogger(__name__)

# Priorities are rescaled against a new landmark once an hour so the
# exponentials never overflow.
RESCALE_THRESHOLD_S = 60 * 60


class Sample:
    """Base class for bounded samples of integer observations."""

    def __init__(self, reservoir_size: int):
        if reservoir_size <= 0:
            raise ValueError(f"Invalid reservoir_size: {reservoir_size}")
        self.reservoir_size = reservoir_size
        self._lock = threading.Lock()
        self._count = 0

    def update(self, value: int) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def values(self) -> List[int]:
        raise NotImplementedError

    def count(self) -> int:
        with self._lock:
            return self._count

    def size(self) -> int:
        return len(self.values())

    def snapshot(self) -> HistogramSnapshot:
        with self._lock:
            count = self._count
            values = self._values_unlocked()
        return HistogramSnapshot(count=count, values=tuple(values))

    def _values_unlocked(self) -> List[int]:
        raise NotImplementedError


class UniformSample(Sample):
    """Uniform reservoir sample (Vitter's algorithm R).

    Every observation ever made has the same probability of being retained.
    """

    def __init__(self, reservoir_size: int = 1028, seed: Optional[int] = None):
        super().__init__(reservoir_size)
        self._rng = np.random.default_rng(seed)
        self._values: List[int] = []

    def update(self, value: int) -> None:
        with self._lock:
            self._count += 1
            if len(self._values) < self.reservoir_size:
                self._values.append(value)
                return
            r = int(self._rng.integers(0, self._count))
            if r < self.reservoir_size:
                self._values[r] = value

    def clear(self) -> None:
        with self._lock:
            self._count = 0
            self._values = []

    def values(self) -> List[int]:
        with self._lock:
            return self._values_unlocked()

    def _values_unlocked(self) -> List[int]:
        return list(self._values)


class ExpDecaySample(Sample):
    """Exponentially-decaying reservoir sample.

    Observations are weighted towards the recent past using forward decay
    priorities ``exp(alpha * age) / u``; the lowest priority is evicted when
    the reservoir is full. The default alpha of 0.015 biases the sample
    towards roughly the last five minutes.
    """

    def __init__(
        self,
        reservoir_size: int = 1028,
        alpha: float = 0.015,
        clock: Callable[[], float] = time.monotonic,
        seed: Optional[int] = None,
    ):
        super().__init__(reservoir_size)
        self.alpha = alpha
        self._clock = clock
        self._rng = np.random.default_rng(seed)
        self._t0 = clock()
        self._t1 = self._t0 + RESCALE_THRESHOLD_S
        self._heap: List[Tuple[float, int, int]] = []
        self._seq = _sequence()

    def update(self, value: int) -> None:
        self.update_at(self._clock(), value)

    def update_at(self, timestamp: float, value: int) -> None:
        """Record ``value`` as observed at ``timestamp`` (clock seconds)."""
        with self._lock:
            self._count += 1
            if len(self._heap) == self.reservoir_size:
                heapq.heappop(self._heap)
            # 1 - random() lies in (0, 1], never zero
            u = 1.0 - float(self._rng.random())
            priority = math.exp((timestamp - self._t0) * self.alpha) / u
            heapq.heappush(self._heap, (priority, next(self._seq), value))
            if timestamp > self._t1:
                self._rescale(timestamp)

    def _rescale(self, timestamp: float) -> None:
        factor = math.exp(-self.alpha * (timestamp - self._t0))
        self._heap = [(p * factor, seq, v) for p, seq, v in self._heap]
        heapq.heapify(self._heap)
        self._t0 = timestamp
        self._t1 = timestamp + RESCALE_THRESHOLD_S
        logger.debug(f"Rescaled decay sample landmark to {timestamp}")

    def clear(self) -> None:
        with self._lock:
            self._count = 0
            self._heap = []
            self._t0 = self._clock()
            self._t1 = self._t0 + RESCALE_THRESHOLD_S

    def values(self) -> List[int]:
        with self._lock:
            return self._values_unlocked()

    def _values_unlocked(self) -> List[int]:
        return [v for _, _, v in self._heap]
