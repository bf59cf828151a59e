"""Export configuration and its default builder."""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Tuple

from ..utils.units import NANOSECOND
from ..errors import ConfigurationError

DEFAULT_PERCENTILES: Tuple[float, ...] = (0.5, 0.75, 0.95, 0.99, 0.999)
DEFAULT_CONNECT_TIMEOUT_S = 5.0

# Legacy spelling kept so existing dashboards keep matching
HISTOGRAM_PERCENTILE_SUFFIX = "precentile"
TIMER_PERCENTILE_SUFFIX = "percentile"

_USE_CONNECT_TIMEOUT = object()


def parse_address(address: str) -> Tuple[str, int]:
    """Split ``"host:port"`` (or ``"[v6addr]:port"``) into its parts.

    Raises:
        ConfigurationError: If the address is malformed
    """
    if not isinstance(address, str) or ":" not in address:
        raise ConfigurationError(f"Invalid address {address!r}: expected host:port")

    host, _, port_str = address.rpartition(":")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not host:
        raise ConfigurationError(f"Invalid address {address!r}: missing host")
    try:
        port = int(port_str)
    except ValueError:
        raise ConfigurationError(f"Invalid address {address!r}: port is not a number")
    if not 0 < port < 65536:
        raise ConfigurationError(f"Invalid address {address!r}: port out of range")
    return host, port


@dataclass(frozen=True)
class ExportConfig:
    """Immutable configuration consumed by every export cycle.

    Attributes:
        address: Collector address as ``host:port``
        registry: Source of metrics, anything with ``each(visitor)``
        flush_interval: Seconds between cycles
        duration_unit: Nanoseconds per reported duration unit (timer divisor)
        prefix: Prepended to every metric name
        percentiles: Fractions (0.0-1.0) reported for histograms and timers
        connect_timeout: Seconds allowed to establish the connection
        write_timeout: Seconds allowed per write, ``None`` for no deadline
        histogram_percentile_suffix: Suffix of histogram percentile lines
    """

    address: str
    registry: Any
    flush_interval: float
    duration_unit: int = NANOSECOND
    prefix: str = ""
    percentiles: Tuple[float, ...] = DEFAULT_PERCENTILES
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_S
    write_timeout: Optional[float] = field(default=_USE_CONNECT_TIMEOUT)  # type: ignore[assignment]
    histogram_percentile_suffix: str = HISTOGRAM_PERCENTILE_SUFFIX

    def __post_init__(self) -> None:
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "percentiles", tuple(float(p) for p in self.percentiles))
        if self.write_timeout is _USE_CONNECT_TIMEOUT:
            object.__setattr__(self, "write_timeout", self.connect_timeout)
        self.validate()

    def validate(self) -> None:
        """Reject values that would make a cycle meaningless.

        Raises:
            ConfigurationError: On the first invalid field
        """
        parse_address(self.address)

        if self.registry is None or not callable(getattr(self.registry, "each", None)):
            raise ConfigurationError("registry must provide each(visitor)")
        if self.flush_interval <= 0:
            raise ConfigurationError(f"Invalid flush_interval: {self.flush_interval} (must be > 0)")
        if self.duration_unit <= 0:
            raise ConfigurationError(f"Invalid duration_unit: {self.duration_unit} (must be > 0)")
        if self.connect_timeout <= 0:
            raise ConfigurationError(f"Invalid connect_timeout: {self.connect_timeout}")
        if self.write_timeout is not None and self.write_timeout <= 0:
            raise ConfigurationError(f"Invalid write_timeout: {self.write_timeout}")

        for p in self.percentiles:
            if not 0.0 <= p <= 1.0:
                raise ConfigurationError(f"Invalid percentile: {p} (must be within [0, 1])")

        if not self.histogram_percentile_suffix:
            raise ConfigurationError("histogram_percentile_suffix must not be empty")

    @property
    def host(self) -> str:
        return parse_address(self.address)[0]

    @property
    def port(self) -> int:
        return parse_address(self.address)[1]


def default_config(
    registry: Any,
    flush_interval: float,
    prefix: str,
    address: str,
    percentiles: Optional[Sequence[float]] = None,
) -> ExportConfig:
    """Build the configuration used by the ``graphite()`` convenience entry point.

    Durations are reported unconverted (nanoseconds) and percentiles default to
    ``DEFAULT_PERCENTILES``.
    """
    return ExportConfig(
        address=address,
        registry=registry,
        flush_interval=flush_interval,
        duration_unit=NANOSECOND,
        prefix=prefix,
        percentiles=tuple(percentiles) if percentiles is not None else DEFAULT_PERCENTILES,
    )
