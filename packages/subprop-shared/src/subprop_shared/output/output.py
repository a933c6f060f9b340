"""Output helpers separating user-facing messages from machine output.

User messages go to stderr so stdout stays clean for anything a script might
capture (for example `subprop order`).
"""

import click


def user_output(message: str = "", *, nl: bool = True) -> None:
    """Print a message meant for the operator (stderr)."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: str = "", *, nl: bool = True) -> None:
    """Print a message meant for other programs (stdout)."""
    click.echo(message, nl=nl)
