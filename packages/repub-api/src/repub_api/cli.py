# SPDX-License-Identifier: MIT
"""CLI entry point for the repub command."""

from __future__ import annotations

import os
import sys
from typing import Optional

import click

from . import __version__
from .auth import generate_api_token
from .config import LOG_LEVELS, READ_TOKEN_PREFIX, WRITE_TOKEN_PREFIX, APIConfig, ConfigError
from .log import configure_logging


def echo_error(message: str) -> None:
    """Print an error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


@click.group()
@click.version_option(version=__version__, prog_name="repub")
def cli() -> None:
    """Hosted Dart package repository server.

    \b
    Examples:
        REPUB_WRITE_TOKEN_ALICE=secret repub serve --port 9090
        repub generate-token --name alice --write
    """


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True, envvar="REPUB_HOST", help="Bind address.")
@click.option("--port", default=9090, show_default=True, type=int, envvar="REPUB_PORT", help="Port to bind to.")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development.")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level for repub and uvicorn output (overrides REPUB_LOG_LEVEL).",
)
def serve(host: str, port: int, reload: bool, log_level: Optional[str]) -> None:
    """Run the repository server."""
    import uvicorn

    if log_level:
        # The app factory reads its configuration from the environment
        os.environ["REPUB_LOG_LEVEL"] = log_level.lower()

    try:
        config = APIConfig.from_env()
        config.validate()
    except ConfigError as e:
        echo_error(str(e))
        sys.exit(1)

    configure_logging(config.log_level)

    uvicorn.run(
        "repub_api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=config.log_level,
        log_config=None,
    )


@cli.command("generate-token")
@click.option("--name", default="admin", show_default=True, help="Identity the token belongs to.")
@click.option("--write/--read", default=True, help="Issue a write token (default) or a read-only token.")
def generate_token(name: str, write: bool) -> None:
    """Print a new random token and the variable that enables it."""
    token = generate_api_token()
    prefix = WRITE_TOKEN_PREFIX if write else READ_TOKEN_PREFIX
    click.echo(token)
    click.echo(f"{prefix}{name.upper()}={token}", err=True)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
