"""
Click CLI implementation for telltales.

This module provides the command-line interface, split into logical
command groups. Running telltales without a command validates the
stored credentials (the same as 'telltales auth validate').
"""

import logging
import sys
from dataclasses import dataclass

import click

from telltales import __version__
from telltales.oauth.config import TelltalesConfig
from telltales.oauth.coordinator import AuthCoordinator
from telltales.oauth.exceptions import ConfigurationError

from .auth_commands import auth, validate
from .device_commands import devices
from .utils import print_error

logger = logging.getLogger(__name__)


@dataclass
class CLIContext:
    """Context object passed to all CLI commands.

    Attributes:
        config: Configuration settings
        coordinator: Authentication coordinator shared by all commands
        verbose: Verbose output enabled
    """
    config: TelltalesConfig
    coordinator: AuthCoordinator
    verbose: bool


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(__version__, prog_name="telltales")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """
    telltales - command-line client for Telldus Live.

    Credentials are read from ~/.config/telltales/credentials.yaml
    (override with TELLTALES_CREDENTIALS_FILE).
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        config = TelltalesConfig.from_env()
    except ConfigurationError as e:
        print_error(str(e))
        sys.exit(1)

    logger.debug(f"Using API at {config.api_url}")

    ctx.obj = CLIContext(
        config=config,
        coordinator=AuthCoordinator(config=config),
        verbose=verbose,
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(validate)


# Register command groups
cli.add_command(auth)
cli.add_command(devices)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


__all__ = ["cli", "main"]
