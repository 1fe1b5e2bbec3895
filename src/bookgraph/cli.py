#!/usr/bin/env python3
"""
Main CLI entry point for the bookgraph server.
"""

import os
import sys

import click
import uvicorn

from bookgraph import __version__
from bookgraph.config import settings
from bookgraph.logging import configure_logging, get_logger

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="bookgraph")
def cli() -> None:
    """Bookgraph CLI - run the API server and inspect its schema."""
    pass


@cli.command()
@click.option(
    "--host",
    default=settings.api_host,
    help=f"Host to bind to (default: {settings.api_host})",
)
@click.option(
    "--port",
    default=settings.api_port,
    type=int,
    help=f"Port to bind to (default: {settings.api_port})",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes (default: 1)",
)
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
def serve(
    host: str,
    port: int,
    reload: bool,
    workers: int,
    log_level: str,
) -> None:
    """Start the bookgraph API server."""

    configure_logging(debug=(log_level == "debug"))

    logger.info(
        "Starting bookgraph API server",
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )

    # Worker and reload processes import the app fresh and read these
    if log_level == "debug":
        os.environ["BOOKGRAPH_DEBUG"] = "true"
        os.environ["BOOKGRAPH_LOG_LEVEL"] = "debug"
    else:
        os.environ.setdefault("BOOKGRAPH_DEBUG", "false")
        os.environ.setdefault("BOOKGRAPH_LOG_LEVEL", log_level)

    try:
        if reload or workers > 1:
            uvicorn.run(
                "bookgraph.api.app:app",
                host=host,
                port=port,
                reload=reload,
                workers=(workers if not reload else 1),
                log_level=log_level,
                access_log=True,
            )
        else:
            from bookgraph.api.app import app

            uvicorn.run(
                app,
                host=host,
                port=port,
                log_level=log_level,
                access_log=True,
            )
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


@cli.command("check-schema")
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Only validate; do not print the schema SDL",
)
def check_schema(quiet: bool) -> None:
    """Validate resolver registrations and the GraphQL schema."""
    configure_logging(debug=settings.debug)

    try:
        from bookgraph.graphql.schema import schema, validate_schema

        validate_schema()
    except Exception as e:
        logger.error("Schema check failed", error=str(e))
        click.echo(f"Schema check failed: {e}", err=True)
        sys.exit(1)

    if not quiet:
        click.echo(schema.as_str())
    click.echo("Schema OK", err=True)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
