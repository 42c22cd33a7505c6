# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""
Kafka Health Probe CLI Commands.

Runs a single round-trip probe against a cluster from the command line.

Exit Codes:
    0: Verdict UP
    1: Verdict DOWN
    2: Invalid configuration or fatal bootstrap failure
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from kafka_health_probe.errors import (
    HealthCheckInitializationError,
    ProtocolConfigurationError,
)
from kafka_health_probe.health import KafkaConsumingHealthIndicator
from kafka_health_probe.models import ModelKafkaHealthConfig, ModelKafkaHealthResult
from kafka_health_probe.utils import configure_logging, sanitize_error_message

console = Console()

EXIT_UP = 0
EXIT_DOWN = 1
EXIT_FATAL = 2


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Log level (default: KAFKA_HEALTH_LOG_LEVEL or INFO)",
)
def cli(log_level: str | None) -> None:
    """Kafka round-trip health probe."""
    configure_logging(log_level)


def _config_options(func: Callable[..., None]) -> Callable[..., None]:
    """Attach the options shared by every command that resolves a config."""
    func = click.option(
        "--send-receive-timeout",
        type=float,
        default=None,
        help="Round-trip deadline in seconds",
    )(func)
    func = click.option(
        "--bootstrap-servers", default=None, help="Kafka broker addresses"
    )(func)
    func = click.option("--topic", default=None, help="Health check topic")(func)
    func = click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="YAML configuration file",
    )(func)
    return func


def _load_config(
    config_path: Path | None,
    topic: str | None,
    bootstrap_servers: str | None,
    send_receive_timeout: float | None,
) -> ModelKafkaHealthConfig:
    """Resolve the effective configuration, exiting with EXIT_FATAL if invalid."""
    try:
        config = (
            ModelKafkaHealthConfig.from_yaml(config_path)
            if config_path is not None
            else ModelKafkaHealthConfig.default()
        )
        overrides = {
            name: value
            for name, value in (
                ("topic", topic),
                ("bootstrap_servers", bootstrap_servers),
                ("send_receive_timeout", send_receive_timeout),
            )
            if value is not None
        }
        if overrides:
            config = ModelKafkaHealthConfig.model_validate(
                {**config.model_dump(), **overrides}
            )
    except ProtocolConfigurationError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e.message}")
        for error in e.context.get("errors", []) or []:
            console.print(f"  [red]{error}[/red]")
        raise SystemExit(EXIT_FATAL) from e
    except ValidationError as e:
        console.print("[bold red]Invalid configuration:[/bold red]")
        for error in e.errors():
            location = ".".join(str(p) for p in error["loc"])
            console.print(f"  [red]{location}: {error['msg']}[/red]")
        raise SystemExit(EXIT_FATAL) from e
    return config


@cli.command("check")
@_config_options
@click.option("--json", "as_json", is_flag=True, help="Print the verdict as JSON")
def check_cmd(
    config_path: Path | None,
    topic: str | None,
    bootstrap_servers: str | None,
    send_receive_timeout: float | None,
    as_json: bool,
) -> None:
    """Start the health check, run one probe, and report the verdict."""
    config = _load_config(config_path, topic, bootstrap_servers, send_receive_timeout)

    try:
        result = asyncio.run(_run_check(config))
    except HealthCheckInitializationError as e:
        if as_json:
            click.echo(
                json.dumps(
                    {
                        "status": "down",
                        "details": {
                            "topic": config.topic,
                            "error": sanitize_error_message(e),
                            "fatal": True,
                        },
                    }
                )
            )
        else:
            console.print(
                f"[bold red]Kafka health check failed to start:[/bold red] {e.message}"
            )
        raise SystemExit(EXIT_FATAL) from e

    if as_json:
        click.echo(json.dumps(result.to_dict()))
    else:
        _print_result(result)
    raise SystemExit(EXIT_UP if result.is_up else EXIT_DOWN)


@cli.command("show-config")
@_config_options
def show_config_cmd(
    config_path: Path | None,
    topic: str | None,
    bootstrap_servers: str | None,
    send_receive_timeout: float | None,
) -> None:
    """Print the effective configuration (credentials stripped)."""
    config = _load_config(config_path, topic, bootstrap_servers, send_receive_timeout)

    table = Table(title="Kafka Health Check Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="bold")
    for name, value in config.safe_summary().items():
        table.add_row(name, json.dumps(value) if isinstance(value, dict) else str(value))
    console.print(table)


async def _run_check(config: ModelKafkaHealthConfig) -> ModelKafkaHealthResult:
    async with KafkaConsumingHealthIndicator(config) as indicator:
        return await indicator.health_check()


def _print_result(result: ModelKafkaHealthResult) -> None:
    """Print a verdict with rich formatting."""
    if result.is_up:
        console.print("[bold green]Kafka health: UP[/bold green]")
    else:
        console.print("[bold red]Kafka health: DOWN[/bold red]")

    table = Table(title="Details")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="dim")
    for key, value in result.details.items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


if __name__ == "__main__":
    cli()
