"""
Styled terminal output for the CLI, built on click.style.
"""

import click


def success(message: str) -> None:
    """Print success message in green."""
    click.echo(click.style(message, fg="green"))


def error(message: str) -> None:
    """Print error message in red (stderr)."""
    click.echo(click.style(message, fg="red"), err=True)


def info(message: str) -> None:
    """Print info message in cyan."""
    click.echo(click.style(message, fg="cyan"))


def kv(key: str, value: str, *, key_width: int = 12, indent: int = 2) -> None:
    """
    Print an aligned key-value pair.

        kind:       skills
        version:    1.0.0
    """
    prefix = " " * indent
    k = click.style(f"{key}:", fg="white")
    v = click.style(str(value), fg="cyan")
    padding = " " * max(1, key_width - len(key) - 1)
    click.echo(f"{prefix}{k}{padding}{v}")
