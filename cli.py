#!/usr/bin/env python3
"""
Notes CLI.

Primary entry point for running and maintaining the notes service.
Use --service to select what to run.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service init-db
    python cli.py --service config
"""

import asyncio
import subprocess
import sys
from pathlib import Path

import click
import structlog

from notecore.backend.core.logging import get_logger, setup_logging

PROJECT_ROOT = Path(__file__).parent


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "init-db", "config", "info"]),
    default="info",
    help="Service or command to run.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.option("--host", default=None, help="Server host.")
@click.option("--port", default=None, type=int, help="Server port.")
@click.option("--reload", is_flag=True, help="Enable auto-reload (server only).")
def main(
    service: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
) -> None:
    """
    Notes CLI.

    \b
    Examples:
        python cli.py --service server --reload --verbose
        python cli.py --service init-db
        python cli.py --service config
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")
    structlog.contextvars.bind_contextvars(source="cli")
    logger = get_logger(__name__)
    logger.debug("CLI invoked", extra={"service": service, "log_level": log_level})

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "init-db":
        init_db(logger)
    elif service == "config":
        show_config(logger)
    else:
        show_info()


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI server with uvicorn."""
    from notecore.backend.core.config import get_app_config

    try:
        server_config = get_app_config().application.server
    except (OSError, ValueError) as e:
        logger.error("Failed to load configuration.", extra={"error": str(e)})
        click.echo(
            click.style("Error: Could not load config/settings/application.yaml.", fg="red"),
            err=True,
        )
        sys.exit(1)

    server_host = host or server_config.host
    server_port = port or server_config.port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "notecore.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]
    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def init_db(logger) -> None:
    """Create the notes tables and the full-text index."""
    from notecore.backend.core.config import get_database_url
    from notecore.backend.core.database import dispose_engine, init_database

    async def _init() -> None:
        try:
            await init_database()
        finally:
            await dispose_engine()

    url = get_database_url()
    logger.info("Initializing database", extra={"url": url})
    asyncio.run(_init())
    click.echo(click.style(f"Database ready: {url}", fg="green"))


def show_config(logger) -> None:
    """Display loaded configuration."""
    from notecore.backend.core.config import get_app_config, get_database_url

    try:
        app_config = get_app_config()
    except (OSError, ValueError) as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)

    sections = {
        "Application": app_config.application,
        "Database": app_config.database,
        "Logging": app_config.logging,
        "Client": app_config.client,
    }
    for title, section in sections.items():
        click.echo(f"{title} Settings (from YAML):")
        click.echo("-" * 40)
        _echo_mapping(section.model_dump(), indent=2)
        click.echo()

    click.echo(f"Effective database URL: {get_database_url()}")
    logger.info("Configuration displayed successfully")


def _echo_mapping(values: dict, indent: int) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_mapping(value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_info() -> None:
    """Display available services."""
    click.echo("Notes Service")
    click.echo("=" * 40)
    click.echo("Services (--service):")
    click.echo("  server         FastAPI server")
    click.echo("  init-db        Create tables and the search index")
    click.echo("  config         Display configuration")
    click.echo("  info           Show this information")


if __name__ == "__main__":
    main()
