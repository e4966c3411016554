"""Output utilities for CLI commands with clear intent.

user_output is for messages meant for a person (status, progress, errors)
and goes to stderr. machine_output is for results other programs may parse
and goes to stdout.
"""

from typing import Any

import click


def user_output(message: Any | None = None, nl: bool = True, color: bool | None = None) -> None:
    """Output informational message for human users (stderr)."""
    click.echo(message, nl=nl, err=True, color=color)


def machine_output(message: Any | None = None, nl: bool = True, color: bool | None = None) -> None:
    """Output structured data for machine consumption (stdout)."""
    click.echo(message, nl=nl, color=color)
