"""CLI entry point for the dnsprov tool."""

import logging
import sys
import threading

import click
from prometheus_client import CollectorRegistry, start_http_server

from dnsprov.config import ConfigError, ProviderConfig, load_config
from dnsprov.output import render
from dnsprov.provider import Provider
from dnsprov.resolvers import get_resolver

logger = logging.getLogger(__name__)

FORMATS = ("table", "json")


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to YAML config file (default: ~/.dnsprov/config.yaml).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Resolve discovery specifications into peer addresses."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        cfg = load_config(config_path)
    except (ConfigError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    logger.debug("Config loaded: %s", cfg)
    ctx.obj = cfg


@main.command()
@click.argument("specs", nargs=-1)
@click.option(
    "--format",
    "-f",
    "output_format",
    default="table",
    type=click.Choice(FORMATS, case_sensitive=False),
    show_default=True,
    help="Output format.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Abandon lookups still pending after this many seconds.",
)
@click.pass_obj
def resolve(
    cfg: ProviderConfig,
    specs: tuple[str, ...],
    output_format: str,
    timeout: float | None,
) -> None:
    """Run a single resolution cycle and print the addresses.

    SPECS default to the ``specs`` list of the config file.
    """
    spec_list = _spec_list(specs, cfg)
    provider = _build_provider(cfg, CollectorRegistry())

    report = provider.resolve(spec_list, timeout=timeout)
    render(provider.cache.snapshot(), output_format.lower(), report=report)


@main.command()
@click.argument("specs", nargs=-1)
@click.option(
    "--interval",
    type=float,
    default=None,
    help="Seconds between refresh cycles (default: from config).",
)
@click.option(
    "--cycles",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Stop after this many cycles; 0 runs until interrupted.",
)
@click.option(
    "--metrics-port",
    type=int,
    default=None,
    help="Serve Prometheus metrics on this port (default: from config).",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    default="table",
    type=click.Choice(FORMATS, case_sensitive=False),
    show_default=True,
    help="Output format.",
)
@click.pass_obj
def watch(
    cfg: ProviderConfig,
    specs: tuple[str, ...],
    interval: float | None,
    cycles: int,
    metrics_port: int | None,
    output_format: str,
) -> None:
    """Periodically refresh SPECS and print the addresses after each cycle."""
    spec_list = _spec_list(specs, cfg)
    interval = cfg.interval if interval is None else interval
    metrics_port = cfg.metrics_port if metrics_port is None else metrics_port

    registry = CollectorRegistry()
    provider = _build_provider(cfg, registry)
    if metrics_port is not None:
        start_http_server(metrics_port, registry=registry)
        logger.info("Serving metrics on :%d", metrics_port)

    stop = threading.Event()
    completed = 0
    try:
        while not stop.is_set():
            # A cycle may not outlast the interval it refreshes.
            report = provider.resolve(spec_list, timeout=interval or None, stop=stop)
            render(provider.cache.snapshot(), output_format.lower(), report=report)
            completed += 1
            if cycles and completed >= cycles:
                break
            stop.wait(interval)
    except KeyboardInterrupt:
        stop.set()
        logger.info("Interrupted after %d cycle(s)", completed)


def _spec_list(specs: tuple[str, ...], cfg: ProviderConfig) -> list[str]:
    """Return the specs given on the command line, else the configured ones."""
    spec_list = list(specs) or cfg.specs
    if not spec_list:
        click.echo("Error: no specifications given or configured", err=True)
        sys.exit(1)
    return spec_list


def _build_provider(cfg: ProviderConfig, registry: CollectorRegistry) -> Provider:
    """Create a ``Provider`` wired to the configured resolver.

    Args:
        cfg: Loaded ``ProviderConfig`` instance.
        registry: Registry the provider's metrics are registered on.
    """
    try:
        resolver = get_resolver(
            cfg.resolver,
            nameservers=cfg.nameservers,
            timeout=cfg.lookup_timeout,
        )
        return Provider(
            resolver=resolver,
            registry=registry,
            name=cfg.name,
            max_workers=cfg.max_workers,
        )
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
