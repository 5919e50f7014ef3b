"""Command-line interface for ArticleFlow."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from rich.console import Console
from rich.table import Table

from articleflow import __version__
from articleflow.config import Config, settings
from articleflow.container import DependencyContainer, build_adapters
from articleflow.models import Backend, Failure
from articleflow.observability import configure_logging
from articleflow.pipeline import IngestOptions
from articleflow.retry import backoff_schedule, worst_case_latency

console = Console()
err_console = Console(stderr=True)
logger = structlog.get_logger(__name__)

BACKEND_CHOICES = [backend.value for backend in Backend]


def _load_config(config_path: Optional[Path]) -> Config:
    if config_path is not None:
        return Config.from_yaml(config_path)
    return settings


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides the configured one)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """ArticleFlow - turn article URLs into enriched, display-ready records."""
    ctx.ensure_object(dict)
    loaded = _load_config(Path(config) if config else None)
    monitoring = loaded.monitoring
    if log_level:
        monitoring = monitoring.model_copy(update={"log_level": log_level.upper()})
    configure_logging(monitoring)
    ctx.obj["config"] = loaded


@cli.command()
@click.argument("url")
@click.option("--backend", "-b", type=click.Choice(BACKEND_CHOICES), help="Backend to try first")
@click.option("--timeout-ms", type=click.IntRange(min=1), help="Per-attempt timeout in milliseconds")
@click.option("--compact", is_flag=True, help="Print JSON on a single line")
@click.pass_context
def ingest(ctx: click.Context, url: str, backend: Optional[str], timeout_ms: Optional[int], compact: bool) -> None:
    """Extract, sanitize and enrich the article at URL; print it as JSON."""
    config: Config = ctx.obj["config"]
    options = IngestOptions(
        preferred_backend=Backend(backend) if backend else None,
        timeout_ms=timeout_ms or config.backends.default_timeout_ms,
    )

    async def run_ingest() -> dict:
        async with DependencyContainer(config) as container:
            pipeline = await container.get_pipeline()
            result = await pipeline.ingest(url, options)
        return result.to_dict()

    try:
        payload = asyncio.run(run_ingest())
    except ValueError as e:
        err_console.print(f"[red]❌ {e}[/red]")
        sys.exit(2)

    click.echo(json.dumps(payload, indent=None if compact else 2, ensure_ascii=False))
    if not payload["success"]:
        error = payload["error"]
        err_console.print(f"[red]❌ {error['code']}: {error['message']}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--timeout-ms", type=click.IntRange(min=1), help="Per-attempt timeout used for the latency bound")
@click.pass_context
def backends(ctx: click.Context, timeout_ms: Optional[int]) -> None:
    """Show the configured fallback order and the worst-case latency."""
    config: Config = ctx.obj["config"]
    timeout = (timeout_ms or config.backends.default_timeout_ms) / 1000
    policy = config.retry.to_policy()

    async def configured_backends() -> list:
        async with DependencyContainer(config) as container:
            transport = await container.get_transport()
            return [adapter.backend for adapter in build_adapters(config, transport)]

    try:
        active = asyncio.run(configured_backends())
    except ValueError as e:
        err_console.print(f"[red]❌ {e}[/red]")
        sys.exit(2)

    table = Table(title="Extraction backends")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Backend", style="magenta")
    table.add_column("Status")
    for position, backend in enumerate(config.backends.order, start=1):
        status = "[green]active[/green]" if backend in active else "[yellow]not configured[/yellow]"
        table.add_row(str(position), backend.value, status)
    console.print(table)

    delays = ", ".join(f"{delay:g}s" for delay in backoff_schedule(policy)) or "none"
    bound = worst_case_latency(policy, len(active), timeout)
    console.print(f"Attempts per backend: {policy.max_attempts} (backoff: {delays})")
    console.print(f"Worst-case latency at {timeout:g}s per attempt: [bold]{bound:g}s[/bold]")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
