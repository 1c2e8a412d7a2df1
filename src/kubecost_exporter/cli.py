from __future__ import annotations

import asyncio
import os
import signal
from typing import Dict, Optional, Tuple

import click
from prometheus_client import CollectorRegistry, Gauge, generate_latest
from rich.console import Console

from . import __version__
from .cli_errors import NetworkError, handle_cli_errors
from .config import ExporterConfig, describe, load_config
from .fetcher import AllocationFetcher
from .http_client import get_client
from .logging_config import setup_logging
from .metrics import MetricSchema, MetricUpdater, build_gauges
from .scheduler import Poller, PollResult
from .server import serve_metrics
from .window import parse_duration_or_default

console = Console()


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """
    kubecost-exporter: Kubecost cost allocation metrics for Prometheus.
    """
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))


def _prepare(
    config_dir: Optional[str],
) -> Tuple[ExporterConfig, CollectorRegistry, MetricUpdater]:
    config = load_config(config_dir)
    setup_logging(config.log_level)

    # A fresh registry keeps the default process and platform collectors out of
    # the scrape output
    registry = CollectorRegistry()
    schema = MetricSchema.from_config(config.metrics.names, config.metrics.labels)
    gauges: Dict[str, Gauge] = build_gauges(
        schema, registry, namespace=config.metrics.namespace, subsystem=config.metrics.subsystem
    )
    return config, registry, MetricUpdater(schema, gauges)


async def _serve_logic_async(config: ExporterConfig, updater: MetricUpdater) -> None:
    interval = parse_duration_or_default(config.server.update_interval, "server.update_interval")

    async with get_client(config.api.timeout) as client:
        poller = Poller(AllocationFetcher(client), updater, config.api, interval=interval)
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, poller.stop)
            except (NotImplementedError, RuntimeError):  # pragma: no cover - Windows
                pass

        poller.start()
        try:
            await poller.wait_stopped()
        finally:
            poller.stop()

    console.print("Poller stopped")


@cli.command()
@click.option("--config-dir", type=click.Path(file_okay=False), help="Directory of default.yaml")
@handle_cli_errors(context="Serve")
def serve(config_dir: Optional[str]) -> None:
    """Poll the Allocation API and serve metrics until interrupted."""
    config, registry, updater = _prepare(config_dir)
    for line in describe(config):
        console.print(line)

    serve_metrics(registry, config.server.port, config.server.path)
    asyncio.run(_serve_logic_async(config, updater))


async def _once_logic_async(config: ExporterConfig, updater: MetricUpdater) -> PollResult:
    async with get_client(config.api.timeout) as client:
        poller = Poller(AllocationFetcher(client), updater, config.api)
        return await poller.run_once()


@cli.command()
@click.option("--config-dir", type=click.Path(file_okay=False), help="Directory of default.yaml")
@handle_cli_errors(context="Poll")
def once(config_dir: Optional[str]) -> None:
    """Run a single poll and print the resulting metrics."""
    config, registry, updater = _prepare(config_dir)
    result = asyncio.run(_once_logic_async(config, updater))
    if not result.success:
        raise NetworkError(result.error or "poll failed")

    click.echo(generate_latest(registry).decode("utf-8"), nl=False)
    click.echo(
        f"# {result.records_fetched} allocations, {result.gauges_updated} gauges updated", err=True
    )


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":  # pragma: no cover - module execution convenience
    main()
