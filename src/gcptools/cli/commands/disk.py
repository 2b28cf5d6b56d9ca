"""Disk command - grow a persistent disk and its filesystem."""

import click
from ...locator import parse_compute_url
from ...operations import DiskExpand
from ..utils import plan_options, run_command


@click.group()
def disk():
    """Persistent disk helpers."""
    pass


@disk.command()
@click.argument('url')
@click.option('--disk', 'disk_choice', help='Disk name or index, for VM URLs (prompted if omitted)')
@click.option('--size', type=int, help='New size in GB, larger than the current size (prompted if omitted)')
@click.option('--grow-filesystem/--no-grow-filesystem', default=None,
              help='Also grow the filesystem inside the attached VM')
@plan_options
@click.pass_context
def expand(ctx, url, disk_choice, size, grow_filesystem, mode, dry_run, as_json, output_dir):
    """
    Expand a disk given its console URL or the URL of the VM it is attached to.
    """
    def build(provider, settings):
        return DiskExpand(parse_compute_url(url), provider, settings)
    
    values = {"disk": disk_choice, "size": size, "grow_filesystem": grow_filesystem}
    run_command(ctx, build, values, mode, dry_run, as_json, output_dir)
