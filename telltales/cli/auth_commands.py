"""
Authentication commands for telltales.

This module provides the 'auth' command group.
"""

import sys

import click

from .utils import print_error, print_success


@click.group()
def auth() -> None:
    """Manage Telldus Live authentication."""


@auth.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """
    Validate stored credentials, authorizing again if needed.

    Prompts for missing API keys, checks the stored access token and runs
    the OAuth flow in the browser when the token is missing or rejected.
    """
    cli_ctx = ctx.obj
    coordinator = cli_ctx.coordinator
    click.echo(f"Using credentials file at {coordinator.store.path}")

    result = coordinator.run()
    if not result.authenticated:
        print_error(result.reason or "Authentication failed")
        sys.exit(1)

    if result.account_name:
        print_success(f"Authenticated as {result.account_name}.")
    else:
        print_success("Credentials verified with Telldus Live.")
