"""Duration units and parsing of duration strings such as ``"10s"`` or ``"1ms"``."""

import re
from typing import Union

from ..errors import ConfigurationError

# Duration units in nanoseconds, the native resolution of timers
NANOSECOND = 1
MICROSECOND = 1_000
MILLISECOND = 1_000_000
SECOND = 1_000_000_000
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

UNIT_NANOSECONDS = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ns|us|µs|ms|s|m|h)\s*$")


def parse_duration_ns(value: Union[str, int, float]) -> int:
    """Parse a duration into integer nanoseconds.

    Plain numbers are taken as nanoseconds already.

    Raises:
        ConfigurationError: If the string is not a recognised duration
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)

    match = _DURATION_RE.match(value)
    if not match:
        raise ConfigurationError(
            f"Invalid duration: {value!r} (expected e.g. '10s', '1ms', '500us')"
        )
    amount, unit = match.groups()
    return int(round(float(amount) * UNIT_NANOSECONDS[unit]))


def parse_duration_s(value: Union[str, int, float]) -> float:
    """Parse a duration into float seconds.

    Plain numbers are taken as seconds already.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    return parse_duration_ns(value) / SECOND
