"""Version command - show gcptools version."""

import click
from ... import __version__


@click.command()
def version():
    """Show gcptools version."""
    click.echo(f"gcptools version {__version__}")
