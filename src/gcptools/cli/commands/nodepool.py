"""Node pool commands - clone and update GKE node pools."""

import click
from ...locator import parse_node_pool_url
from ...operations import NodePoolClone, NodePoolUpdate
from ...utils.logging import get_logger
from ..utils import plan_options, run_command

logger = get_logger("cli.nodepool")


@click.group()
def nodepool():
    """Clone or update GKE node pools."""
    pass


@nodepool.command()
@click.argument('url')
@click.option('--name', 'new_name', help='Name of the new node pool (prompted if omitted)')
@click.option('--machine-type', help='Override the machine type of the clone')
@click.option('--disk-size', 'disk_size_gb', type=int, help='Override the boot disk size (GB) of the clone')
@click.option('--num-nodes', type=int, help='Override the initial node count of the clone')
@plan_options
@click.pass_context
def clone(ctx, url, new_name, machine_type, disk_size_gb, num_nodes, mode, dry_run, as_json, output_dir):
    """
    Clone a node pool under a new name.
    
    URL is the node pool's console URL. The node version is taken from the
    cluster so the clone is always compatible with the control plane.
    """
    def build(provider, settings):
        return NodePoolClone(parse_node_pool_url(url), provider, settings)
    
    values = {
        "new_name": new_name,
        "machine_type": machine_type,
        "disk_size_gb": disk_size_gb,
        "num_nodes": num_nodes,
    }
    run_command(ctx, build, values, mode, dry_run, as_json, output_dir)


@nodepool.command()
@click.argument('url')
@click.option('--machine-type', help='New machine type (prompted if no change option is given)')
@click.option('--disk-type', help='New boot disk type')
@click.option('--disk-size', 'disk_size_gb', type=int, help='New boot disk size (GB)')
@click.option('--node-labels', help='Kubernetes node labels, k=v,k2=v2 (replaces existing)')
@click.option('--resource-labels', help='GCE resource labels, k=v,k2=v2 (replaces existing)')
@click.option('--node-taints', 'taints', help='Node taints, key=value:Effect,... (replaces existing)')
@click.option('--enable-autoscaling/--no-enable-autoscaling', 'autoscaling_enabled', default=None,
              help='Turn cluster autoscaling on or off')
@click.option('--min-nodes', type=int, help='Autoscaling minimum node count')
@click.option('--max-nodes', type=int, help='Autoscaling maximum node count')
@plan_options
@click.pass_context
def update(ctx, url, machine_type, disk_type, disk_size_gb, node_labels, resource_labels, taints,
           autoscaling_enabled, min_nodes, max_nodes, mode, dry_run, as_json, output_dir):
    """Update a node pool's machine and disk config, labels, taints or autoscaling."""
    def build(provider, settings):
        return NodePoolUpdate(parse_node_pool_url(url), provider, settings)
    
    values = {
        "machine_type": machine_type,
        "disk_type": disk_type,
        "disk_size_gb": disk_size_gb,
        "node_labels": node_labels,
        "resource_labels": resource_labels,
        "taints": taints,
        "autoscaling_enabled": autoscaling_enabled,
        "min_nodes": min_nodes,
        "max_nodes": max_nodes,
    }
    run_command(ctx, build, values, mode, dry_run, as_json, output_dir)
