"""Main CLI entry point for gcptools."""

import logging
import click
from .commands.nodepool import nodepool
from .commands.workload_identity import workload_identity
from .commands.vm import vm
from .commands.disk import disk
from .commands.iam import iam
from ..utils.logging import get_logger, setup_logging
from .. import __version__

logger = get_logger("cli.main")


@click.group()
@click.version_option(version=__version__, prog_name="gcptools", message="%(prog)s version %(version)s")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='Extra config YAML merged over the defaults')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """gcptools - GCP lifecycle operations as plans, scripts or direct execution."""
    obj = ctx.ensure_object(dict)
    obj["config_path"] = config_path
    if verbose:
        setup_logging(logging.DEBUG)


cli.add_command(nodepool)
cli.add_command(workload_identity)
cli.add_command(vm)
cli.add_command(disk)
cli.add_command(iam)

# Import and add version command at the end
from .commands.version import version as version_command
cli.add_command(version_command)
