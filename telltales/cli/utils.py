"""
CLI utility functions for telltales.

This module provides helper functions for formatting output.
"""

from typing import List

import click

from telltales.telldus.models import Entry

EMPTY_LISTING = "No resources returned for the selected filter."


def print_error(message: str) -> None:
    """Print error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def print_success(message: str) -> None:
    """Print success message."""
    click.secho(message, fg="green")


def format_entry(entry: Entry) -> str:
    """Format one resource as a table row."""
    details = entry.details or "-"
    return f"{entry.category.value:<12} {entry.id:<12} {entry.name:<32} {details}"


def print_entries(entries: List[Entry]) -> None:
    """Print resources as a fixed-width table."""
    if not entries:
        click.echo(EMPTY_LISTING)
        return

    click.echo(f"{'TYPE':<12} {'ID':<12} {'NAME':<32} DETAILS")
    for entry in entries:
        click.echo(format_entry(entry))
