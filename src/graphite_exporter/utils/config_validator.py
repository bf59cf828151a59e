"""
Exporter configuration loading and validation.

Configuration files are YAML or JSON with a single ``exporter`` section:

    exporter:
      address: localhost:2003
      flush_interval: 10s
      duration_unit: 1ms
      prefix: myapp
      percentiles: [0.5, 0.75, 0.95, 0.99, 0.999]
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..core.config import (
    DEFAULT_CONNECT_TIMEOUT_S,
    DEFAULT_PERCENTILES,
    HISTOGRAM_PERCENTILE_SUFFIX,
    ExportConfig,
    parse_address,
)
from ..errors import ConfigurationError
from .units import parse_duration_ns, parse_duration_s

logger = logging.getLogger(__name__)

CONFIG_SECTION = "exporter"


class ExporterSettings(BaseModel):
    """Schema of the ``exporter`` section of a configuration file."""

    model_config = ConfigDict(extra="forbid")

    address: str
    flush_interval: float = 10.0
    duration_unit: int = 1
    prefix: str = ""
    percentiles: List[float] = list(DEFAULT_PERCENTILES)
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_S
    write_timeout: Optional[float] = None
    histogram_percentile_suffix: str = HISTOGRAM_PERCENTILE_SUFFIX

    @field_validator("address")
    @classmethod
    def check_address(cls, value: str) -> str:
        parse_address(value)
        return value

    @field_validator("flush_interval", "connect_timeout", mode="before")
    @classmethod
    def parse_seconds(cls, value: Union[str, int, float]) -> float:
        return parse_duration_s(value)

    @field_validator("write_timeout", mode="before")
    @classmethod
    def parse_optional_seconds(cls, value: Union[str, int, float, None]) -> Optional[float]:
        if value is None:
            return None
        return parse_duration_s(value)

    @field_validator("duration_unit", mode="before")
    @classmethod
    def parse_unit(cls, value: Union[str, int]) -> int:
        return parse_duration_ns(value)

    @field_validator("flush_interval", "connect_timeout", "duration_unit")
    @classmethod
    def check_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"must be > 0, got {value}")
        return value

    @field_validator("write_timeout")
    @classmethod
    def check_write_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError(f"must be > 0 or null, got {value}")
        return value

    @field_validator("percentiles")
    @classmethod
    def check_percentiles(cls, value: List[float]) -> List[float]:
        bad = [p for p in value if not 0.0 <= p <= 1.0]
        if bad:
            raise ValueError(f"percentiles must be within [0, 1], got {bad}")
        return value


def load_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML (``.yaml``/``.yml``) or JSON configuration file.

    Raises:
        ConfigurationError: If the file cannot be parsed
    """
    config_file = Path(config_path)

    with open(config_file) as f:
        try:
            if config_file.suffix in ['.yaml', '.yml']:
                config = yaml.safe_load(f)
            else:
                config = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot parse {config_file}: {e}") from e

    return config if config is not None else {}


def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Validate a configuration dictionary.

    Returns:
        (is_valid, errors)
    """
    errors = []

    if not isinstance(config, dict):
        return False, [f"Configuration must be a mapping, got {type(config).__name__}"]

    unknown = set(config) - {CONFIG_SECTION}
    if unknown:
        errors.append(f"Unknown top-level sections: {sorted(unknown)}")

    section = config.get(CONFIG_SECTION)
    if section is None:
        errors.append(f"Missing '{CONFIG_SECTION}' section")
        return False, errors

    try:
        ExporterSettings.model_validate(section)
    except ValidationError as e:
        errors.extend(_format_validation_errors(e))

    return len(errors) == 0, errors


def _format_validation_errors(error: ValidationError) -> List[str]:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in (CONFIG_SECTION, *detail["loc"]))
        messages.append(f"{location}: {detail['msg']}")
    return messages


def validate_and_load_config(
    config_path: Union[str, Path],
) -> Tuple[bool, List[str], Optional[Dict[str, Any]]]:
    """
    Load and validate a configuration file.

    Returns:
        (is_valid, errors, config)
    """
    config = load_config_file(config_path)
    is_valid, errors = validate_config(config)

    if not is_valid:
        logger.warning(f"Configuration has {len(errors)} validation errors")
        for error in errors[:10]:  # Show first 10 errors
            logger.warning(f"  - {error}")
        if len(errors) > 10:
            logger.warning(f"  ... and {len(errors) - 10} more errors")

    return is_valid, errors, config


def build_export_config(config: Dict[str, Any], registry: Any) -> ExportConfig:
    """Turn a validated configuration dictionary into an ``ExportConfig``.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    is_valid, errors = validate_config(config)
    if not is_valid:
        raise ConfigurationError("; ".join(errors))

    settings = ExporterSettings.model_validate(config[CONFIG_SECTION])
    # An absent write_timeout follows connect_timeout, an explicit null disables it
    write_timeout = settings.write_timeout
    if "write_timeout" not in settings.model_fields_set:
        write_timeout = settings.connect_timeout

    return ExportConfig(
        address=settings.address,
        registry=registry,
        flush_interval=settings.flush_interval,
        duration_unit=settings.duration_unit,
        prefix=settings.prefix,
        percentiles=tuple(settings.percentiles),
        connect_timeout=settings.connect_timeout,
        write_timeout=write_timeout,
        histogram_percentile_suffix=settings.histogram_percentile_suffix,
    )


def load_config(config_path: Union[str, Path], registry: Any) -> ExportConfig:
    """Load a configuration file and build an ``ExportConfig`` for ``registry``."""
    return build_export_config(load_config_file(config_path), registry)
