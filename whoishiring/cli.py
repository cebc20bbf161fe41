"""Command-line interface for the Who is Hiring sync service."""

import asyncio
import json
import logging
import logging.config
import signal
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typing_extensions import Annotated

from whoishiring.collector.maintenance import MaintenanceRunner
from whoishiring.collector.sync import SyncProcess, SyncResult
from whoishiring.config import Config
from whoishiring.exceptions import ConfigError, WhoIsHiringError
from whoishiring.hn_client import HackerNewsClient
from whoishiring.models.item import JobStatus
from whoishiring.monitoring.metrics import PrometheusExporter
from whoishiring.storage.database import check_connection, create_session_factory, init_db
from whoishiring.storage.repository import SQLAlchemyRepository

app = typer.Typer(help="Who is Hiring - sync Hacker News hiring threads into a database")

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", log_file: str = "logs/whoishiring.log") -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path of the rotating log file
    """
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": "ext://sys.stderr",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": log_level,
                "formatter": "standard",
                "filename": log_file,
                "maxBytes": 10485760,  # 10 MB
                "backupCount": 5,
                "encoding": "utf8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "file"],
                "level": log_level,
                "propagate": True
            },
            "asyncio": {
                "level": "WARNING",
            },
            "aiohttp": {
                "level": "WARNING",
            },
            "sqlalchemy": {
                "level": "WARNING",
            },
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str, log_level: str) -> Config:
    """
    Load and validate the configuration, then set up logging.

    Raises:
        ConfigError: If the configuration fails validation
    """
    config = Config.from_files(config_path)
    setup_logging(log_level, config.log_file)

    validation_errors = config.validate()
    if validation_errors:
        raise ConfigError(validation_errors)

    return config


def _load_config_or_exit(config_path: str, log_level: str) -> Config:
    try:
        return load_config(config_path, log_level)
    except ConfigError as e:
        for error in e.errors:
            logger.error(f"Configuration error: {error}")
        logger.critical("Invalid configuration, aborting")
        sys.exit(1)


def _start_exporter(config: Config) -> Optional[PrometheusExporter]:
    if not config.monitoring.enable_prometheus:
        return None
    exporter = PrometheusExporter(port=config.monitoring.prometheus_port)
    exporter.start_server()
    return exporter


async def _run_daemon(runner: MaintenanceRunner) -> None:
    """Run the maintenance loop until SIGINT/SIGTERM, finishing the current cycle first."""
    loop = asyncio.get_running_loop()

    def handle_shutdown_signal(signal_name: str) -> None:
        logger.info(f"Received {signal_name} signal, initiating graceful shutdown")
        runner.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_shutdown_signal, sig.name)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass

    await runner.run_daemon()
    logger.info("Sync daemon shut down")


async def run_sync(config: Config, daemon: bool = False) -> Optional[SyncResult]:
    """
    Wire up the store, the API client and the sync process, then run it.

    Args:
        config: Validated application configuration
        daemon: Run the sync on a fixed interval instead of once

    Returns:
        The sync result in one-shot mode, None in daemon mode
    """
    prometheus_exporter = _start_exporter(config)
    engine, session_factory = create_session_factory(config.database)
    repository = SQLAlchemyRepository(session_factory)

    try:
        await init_db(engine)

        async with HackerNewsClient(config.hn, prometheus_exporter) as client:
            sync_process = SyncProcess(
                repository,
                client,
                max_concurrency=config.sync.max_concurrency,
                prometheus_exporter=prometheus_exporter,
            )

            if daemon:
                runner = MaintenanceRunner(config, sync_process, prometheus_exporter)
                await _run_daemon(runner)
                return None

            return await sync_process.run()
    finally:
        await engine.dispose()


async def collect_status(config: Config) -> Dict[str, Any]:
    """Return the latest stored story with its job counts and ok-job id range."""
    engine, session_factory = create_session_factory(config.database)
    repository = SQLAlchemyRepository(session_factory)

    try:
        story = await repository.get_latest_story()
        if story is None:
            return {"story": None}

        counts = await repository.count_jobs(story["hn_id"])
        min_id, max_id = await repository.get_min_max_job_ids(story["hn_id"])
        return {
            "story": story,
            "jobs": {status.name.lower(): counts[status] for status in JobStatus},
            "min_job_id": min_id,
            "max_job_id": max_id,
        }
    finally:
        await engine.dispose()


async def create_schema(config: Config) -> bool:
    engine, _ = create_session_factory(config.database)
    try:
        if not await check_connection(engine):
            return False
        await init_db(engine)
        return True
    finally:
        await engine.dispose()


@app.command()
def sync(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    daemon: Annotated[bool, typer.Option("--daemon", "-d", help="Re-run the sync every sync_interval_sec")] = False,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
) -> None:
    """
    Sync the current "Who is hiring?" story and its jobs.

    Runs once by default, or continuously with --daemon.
    """
    log_level = "DEBUG" if verbose else loglevel
    config_obj = _load_config_or_exit(config, log_level)

    logger.info(f"Starting Who is Hiring sync (daemon={daemon})")

    try:
        result = asyncio.run(run_sync(config_obj, daemon=daemon))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return
    except WhoIsHiringError as e:
        logger.critical(f"Sync failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"Unhandled exception: {str(e)}", exc_info=True)
        sys.exit(1)

    if result is not None:
        typer.echo(json.dumps(asdict(result)))


@app.command("init-db")
def init_db_command(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
) -> None:
    """Create the hiring_story and hiring_job tables."""
    config_obj = _load_config_or_exit(config, loglevel)

    if not asyncio.run(create_schema(config_obj)):
        logger.error("Connection failed! Check the database URL and connectivity.")
        sys.exit(1)

    logger.info("Database schema created")


@app.command()
def status(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "WARNING",
) -> None:
    """Show the latest stored story and its job counts as JSON."""
    config_obj = _load_config_or_exit(config, loglevel)

    try:
        info = asyncio.run(collect_status(config_obj))
    except WhoIsHiringError as e:
        logger.critical(f"Failed to read status: {e}")
        sys.exit(1)

    typer.echo(json.dumps(info, indent=2))


if __name__ == "__main__":
    app()
