"""Exporter loop driving one export cycle per flush interval."""

import logging
import math
import threading
import time
from typing import Any, Callable, Optional

from ..encoding.line_protocol import LineEncoder
from ..errors import ConfigurationError, TransportError
from ..transport.tcp import TcpTransport
from .config import ExportConfig, default_config

logger = logging.getLogger(__name__)

SELF_METRIC_PREFIX = "graphite-exporter"


class GraphiteExporter:
    """Periodically exports a metric registry to a Graphite collector.

    Each cycle captures one timestamp, opens a fresh TCP connection, encodes
    every registered metric and writes the lines in a single pass before
    closing the connection. Cycles never overlap: the loop is a plain
    wait-then-invoke ticker on the calling thread.
    """

    def __init__(
        self,
        config: ExportConfig,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        transport_factory: Callable[..., Any] = TcpTransport,
        instrument: bool = False,
    ) -> None:
        """Initialize the exporter.

        Args:
            config: Export configuration
            clock: Wall clock in Unix seconds, read once per cycle
            monotonic: Clock used to schedule ticks
            sleep: Blocking wait used between ticks
            transport_factory: Called as ``factory(host, port, connect_timeout=..., write_timeout=...)``
                and used as a context manager with a ``send(bytes)`` method
            instrument: Register the exporter's own cycle metrics in the registry

        Raises:
            ConfigurationError: If ``instrument`` is set and the registry has no
                ``timer``/``counter`` accessors
        """
        self.config = config
        self.encoder = LineEncoder(config)
        self._clock = clock
        self._monotonic = monotonic
        self._sleep = sleep
        self._transport_factory = transport_factory

        self.cycle_timer = None
        self.cycle_counter = None
        self.failure_counter = None
        if instrument:
            registry = config.registry
            missing = [
                attr for attr in ("timer", "counter")
                if not callable(getattr(registry, attr, None))
            ]
            if missing:
                raise ConfigurationError(
                    f"instrument=True requires a registry providing "
                    f"{', '.join(missing)}(); {type(registry).__name__} does not"
                )
            self.cycle_timer = registry.timer(f"{SELF_METRIC_PREFIX}.cycle")
            self.cycle_counter = registry.counter(f"{SELF_METRIC_PREFIX}.cycles")
            self.failure_counter = registry.counter(f"{SELF_METRIC_PREFIX}.failures")

        logger.info(
            f"GraphiteExporter initialized (address={config.address}, "
            f"interval={config.flush_interval}s, prefix={config.prefix!r})"
        )

    def run_once(self) -> int:
        """Perform exactly one export cycle.

        Returns:
            Number of lines written

        Raises:
            TransportError: If the connection cannot be established or written to
            Exception: Any error raised while reading a metric
        """
        if self.cycle_counter is not None:
            self.cycle_counter.inc()
        start_ns = time.perf_counter_ns()
        try:
            return self._cycle()
        except Exception:
            if self.failure_counter is not None:
                self.failure_counter.inc()
            raise
        finally:
            if self.cycle_timer is not None:
                self.cycle_timer.update_since(start_ns)

    def _cycle(self) -> int:
        now = int(self._clock())
        config = self.config
        host, port = config.host, config.port

        with self._transport_factory(
            host,
            port,
            connect_timeout=config.connect_timeout,
            write_timeout=config.write_timeout,
        ) as conn:
            lines = self.encoder.encode(config.registry, now)
            conn.send("".join(lines).encode("utf-8"))

        logger.debug(f"Exported {len(lines)} lines to {config.address} at {now}")
        return len(lines)

    def run_forever(self, max_cycles: Optional[int] = None) -> int:
        """Run one cycle per tick of the flush interval.

        Blocks the calling thread. A failed cycle is logged and the loop moves
        on to the next tick; it never stops because of a cycle error.

        Args:
            max_cycles: Stop after this many cycles (``None`` runs forever)

        Returns:
            Number of failed cycles
        """
        interval = self.config.flush_interval
        cycles = 0
        failures = 0
        next_tick = self._monotonic() + interval

        logger.info(f"Starting export loop to {self.config.address} every {interval}s")

        while max_cycles is None or cycles < max_cycles:
            delay = next_tick - self._monotonic()
            if delay > 0:
                self._sleep(delay)

            if not self._tick():
                failures += 1
            cycles += 1

            # Ticks missed while a cycle overran collapse into one immediate tick
            next_tick += interval
            now = self._monotonic()
            if now > next_tick:
                next_tick += math.floor((now - next_tick) / interval) * interval

        logger.info(f"Export loop stopped after {cycles} cycles ({failures} failed)")
        return failures

    def _tick(self) -> bool:
        try:
            self.run_once()
            return True
        except TransportError as e:
            logger.error(f"Graphite export failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error during export cycle: {e}")
        return False


def graphite(registry: Any, flush_interval: float, prefix: str, address: str) -> None:
    """Blocking exporter with the default configuration.

    Reports every metric in ``registry`` to the collector at ``address`` every
    ``flush_interval`` seconds, prefixing names with ``prefix``. Durations are
    not converted and percentiles 50/75/95/99/99.9 are reported.
    """
    graphite_with_config(default_config(registry, flush_interval, prefix, address))


def graphite_with_config(config: ExportConfig) -> None:
    """Blocking exporter like :func:`graphite`, driven by a full configuration."""
    GraphiteExporter(config).run_forever()


def graphite_once(config: ExportConfig) -> int:
    """Perform a single export, raising ``TransportError`` on failure.

    Useful for callers that want their own retry or circuit-breaking policy.
    """
    return GraphiteExporter(config).run_once()


def start_in_thread(
    config: ExportConfig,
    name: str = "graphite-exporter",
    max_cycles: Optional[int] = None,
) -> threading.Thread:
    """Run the export loop in a daemon thread and return the started thread."""
    exporter = GraphiteExporter(config)
    thread = threading.Thread(
        target=exporter.run_forever, args=(max_cycles,), name=name, daemon=True
    )
    thread.start()
    logger.debug(f"Started export thread {name}")
    return thread
