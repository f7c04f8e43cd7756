"""
Device commands for telltales.

This module provides the 'devices' command group for listing the
controllers, devices and sensors on a Telldus Live account.
"""

import json
import logging
import sys

import click

from telltales.oauth.exceptions import TelltalesError

from .utils import print_entries, print_error

logger = logging.getLogger(__name__)

KIND_CHOICES = ("all", "controllers", "devices", "sensors")


@click.group()
def devices() -> None:
    """Inspect resources on the Telldus Live account."""


@devices.command("list")
@click.option(
    "--kind",
    type=click.Choice(KIND_CHOICES),
    default="all",
    show_default=True,
    help="Resources to include",
)
@click.option("--json", "output_json", is_flag=True, help="JSON output")
@click.pass_context
def list_resources(ctx: click.Context, kind: str, output_json: bool) -> None:
    """List controllers, devices and sensors."""
    cli_ctx = ctx.obj
    entries = []

    try:
        client = cli_ctx.coordinator.ensure_authenticated()
        if kind in ("all", "controllers"):
            entries.extend(client.list_controllers())
        if kind in ("all", "devices"):
            entries.extend(client.list_devices())
        if kind in ("all", "sensors"):
            entries.extend(client.list_sensors())
    except TelltalesError as e:
        print_error(str(e))
        sys.exit(1)

    entries.sort(key=lambda entry: entry.sort_key())
    logger.debug(f"Listing {len(entries)} resources (kind={kind})")

    if output_json:
        click.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    print_entries(entries)
