from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from newsdesk.config import Settings, get_settings
from newsdesk.core.logger import get_logger, setup_logging
from newsdesk.data.seed import seed_demo_data
from newsdesk.data.store import SQLiteStore
from newsdesk.services import build_services

log = get_logger("cli")
cli_app = typer.Typer(help="Financial news aggregator (RSS/Finnhub + summaries + quotes).")


def _load_settings() -> Settings:
    """Load configuration or exit with a readable error."""
    try:
        settings = get_settings()
    except Exception as e:
        setup_logging("INFO")
        log.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)
    setup_logging(settings.log_level, json_output=settings.log_json, log_file=settings.log_file)
    return settings


@cli_app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default: HOST setting)"),
    port: Optional[int] = typer.Option(None, help="Listen port (default: PORT setting)"),
    scheduler: bool = typer.Option(True, "--scheduler/--no-scheduler", help="Run periodic ingestion"),
):
    """Run the HTTP API with the ingestion scheduler."""
    from newsdesk.api.app import create_app

    settings = _load_settings()
    if not scheduler:
        settings = settings.model_copy(update={"scheduler_enabled": False})

    app = create_app(settings)
    bind_host = host or settings.host
    bind_port = port or settings.port
    log.info(f"Server running on http://{bind_host}:{bind_port}")
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)


@cli_app.command()
def fetch():
    """Run a single ingestion cycle and print the counts."""
    settings = _load_settings()

    async def _run() -> dict:
        services = build_services(settings)
        try:
            result = await services.pipeline.run_cycle()
        finally:
            await services.aclose()
        return result.to_dict()

    counts = asyncio.run(_run())
    typer.echo(json.dumps(counts, indent=2))


@cli_app.command()
def seed():
    """Load demo events, stocks and calendar entries into the store."""
    settings = _load_settings()
    store = SQLiteStore(path=Path(settings.store_path))
    store.init()
    counts = seed_demo_data(store)
    typer.echo(json.dumps(counts))


@cli_app.command()
def validate():
    """Validate configuration and report which sources are enabled."""
    settings = _load_settings()
    log.info("Configuration validation passed!")
    log.info(f"  Store: {settings.store_path}")
    log.info(f"  RSS feeds: {len(settings.rss_feeds_list)}")
    log.info(f"  Interval: every {settings.fetch_interval_seconds:g}s, cap {settings.max_items_per_cycle} items")

    for feature, enabled in settings.features.items():
        if enabled:
            log.info(f"  {feature}: configured")
        else:
            log.warning(f"  {feature}: NOT configured (feature disabled)")


if __name__ == "__main__":
    cli_app()
