"""Command-line interface for graphite-exporter."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from graphite_exporter.core import GraphiteExporter
from graphite_exporter.core.config import DEFAULT_PERCENTILES
from graphite_exporter.errors import ConfigurationError, TransportError
from graphite_exporter.metrics import Registry
from graphite_exporter.utils.config_validator import (
    load_config,
    validate_and_load_config,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _build_exporter(config_file: str) -> GraphiteExporter:
    """Exporter over a fresh registry holding only the exporter's own metrics."""
    registry = Registry()
    config = load_config(config_file, registry)
    return GraphiteExporter(config, instrument=True)


@click.group()
@click.version_option(version="0.1.0", prog_name="graphite-exporter")
def cli():
    """graphite-exporter: ship in-process metrics to Graphite."""
    pass


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
@click.option(
    "--log-level", "-l",
    type=click.Choice(LOG_LEVELS),
    default="INFO",
    help="Logging level"
)
@click.option(
    "--max-cycles", "-n", type=int, default=None,
    help="Stop after this many export cycles (default: run forever)"
)
def run(config_file: str, log_level: str, max_cycles: Optional[int]):
    """Run the export loop from a configuration file."""
    logging.getLogger().setLevel(getattr(logging, log_level))

    click.echo(f"Loading configuration from {config_file}...")

    try:
        exporter = _build_exporter(config_file)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(
        f"Exporting to {exporter.config.address} every {exporter.config.flush_interval}s"
    )
    try:
        failures = exporter.run_forever(max_cycles=max_cycles)
    except KeyboardInterrupt:
        click.echo("\nStopped.")
        return

    click.echo(f"Completed {max_cycles} cycles ({failures} failed)")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
def once(config_file: str):
    """Perform a single export cycle and report the outcome."""
    try:
        exporter = _build_exporter(config_file)
        lines = exporter.run_once()
    except ConfigurationError as e:
        click.echo(click.style(f"Invalid configuration: {e}", fg="red"), err=True)
        sys.exit(1)
    except TransportError as e:
        click.echo(click.style(f"Export failed: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"✓ Exported {lines} lines to {exporter.config.address}", fg="green"))


@cli.command()
@click.option(
    "--output", "-o", default="graphite_exporter.yaml",
    help="Output file path"
)
@click.option(
    "--format", "-f", type=click.Choice(["yaml", "json"]), default="yaml",
    help="Configuration file format"
)
def generate_config(output: str, format: str):
    """Generate an example configuration file."""
    example_config = {
        "exporter": {
            "address": "localhost:2003",
            "flush_interval": "10s",
            "duration_unit": "1ms",
            "prefix": "myapp",
            "percentiles": list(DEFAULT_PERCENTILES),
            "connect_timeout": "5s",
            "write_timeout": "5s",
        },
    }

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if format == "yaml":
        import yaml
        with open(output_path, "w") as f:
            yaml.dump(example_config, f, default_flow_style=False, sort_keys=False)
    else:
        import json
        with open(output_path, "w") as f:
            json.dump(example_config, f, indent=2)

    click.echo(f"Generated example configuration at {output_path}")


@cli.command()
@click.argument("config_file", type=click.Path(exists=True))
def validate(config_file: str):
    """Validate a configuration file without exporting anything."""
    click.echo(f"Validating configuration: {config_file}")

    try:
        is_valid, errors, _ = validate_and_load_config(config_file)
    except Exception as e:
        click.echo(click.style(f"Error validating configuration: {e}", fg="red"))
        sys.exit(1)

    if is_valid:
        click.echo(click.style("✓ Configuration is valid", fg="green"))
    else:
        click.echo(click.style(f"✗ Configuration has {len(errors)} errors:", fg="red"))
        for i, error in enumerate(errors[:20], 1):
            click.echo(f"  {i}. {error}")
        if len(errors) > 20:
            click.echo(f"  ... and {len(errors) - 20} more errors")

    sys.exit(0 if is_valid else 1)


if __name__ == "__main__":
    cli()
