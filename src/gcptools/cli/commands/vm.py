"""VM commands - machine type and service account changes."""

import click
from ...locator import parse_instance_url
from ...operations import VmResize, VmServiceAccount
from ..utils import plan_options, run_command


@click.group()
def vm():
    """Change Compute Engine VM settings."""
    pass


@vm.command()
@click.argument('url')
@click.option('--machine-type', help='New machine type (prompted if omitted)')
@plan_options
@click.pass_context
def resize(ctx, url, machine_type, mode, dry_run, as_json, output_dir):
    """Change a VM's machine type (stop, set machine type, start)."""
    def build(provider, settings):
        return VmResize(parse_instance_url(url), provider, settings)
    
    run_command(ctx, build, {"machine_type": machine_type}, mode, dry_run, as_json, output_dir)


@vm.command(name='service-account')
@click.argument('url')
@click.option('--service-account', help='New service account email (prompted if omitted)')
@plan_options
@click.pass_context
def service_account(ctx, url, service_account, mode, dry_run, as_json, output_dir):
    """Change a VM's service account, creating the account if it is missing."""
    def build(provider, settings):
        return VmServiceAccount(parse_instance_url(url), provider, settings)
    
    run_command(ctx, build, {"service_account": service_account}, mode, dry_run, as_json, output_dir)
