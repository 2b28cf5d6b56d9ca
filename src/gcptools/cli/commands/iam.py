"""IAM commands - replicate a principal's roles and batch-apply roles."""

import sys
import click
from ...locator import read_list_file, validate_principal
from ...locator.models import ResourceIdentity, ResourceKind
from ...operations import IamBatchApply, IamReplicate
from ...operations.iam import GLOBAL
from ...utils.errors import GcpToolsError
from ..utils import format_error, plan_options, resolve_file_path, run_command


@click.group()
def iam():
    """Project-level IAM helpers."""
    pass


@iam.command()
@click.argument('project')
@click.argument('principal')
@click.option('--to-principal', 'target_principal', help='Replicate to this principal in the same project')
@click.option('--to-project', 'target_project', help='Replicate the same principal to this project')
@plan_options
@click.pass_context
def replicate(ctx, project, principal, target_principal, target_project, mode, dry_run, as_json, output_dir):
    """
    Replicate PRINCIPAL's roles in PROJECT.
    
    Conditional bindings are not replicated.
    """
    if target_principal and target_project:
        click.echo(format_error("Use either --to-principal or --to-project, not both"), err=True)
        sys.exit(1)
    
    def build(provider, settings):
        identity = ResourceIdentity(
            kind=ResourceKind.IAM_PRINCIPAL,
            project=project,
            location=GLOBAL,
            parent=project,
            name=validate_principal(principal),
        )
        return IamReplicate(identity.require_complete(), provider, settings)
    
    values = {"target_principal": target_principal, "target_project": target_project}
    run_command(ctx, build, values, mode, dry_run, as_json, output_dir)


@iam.command()
@click.argument('member')
@click.option('--roles-file', help='File with one role per line (default from config: roles.txt)')
@click.option('--projects-file', help='File with one project id per line (default from config: projects.txt)')
@plan_options
@click.pass_context
def apply(ctx, member, roles_file, projects_file, mode, dry_run, as_json, output_dir):
    """
    Grant every role in the roles file to MEMBER on every listed project.
    
    MEMBER is serviceAccount:..., user:... or group:....
    """
    def build(provider, settings):
        try:
            roles_path = resolve_file_path(roles_file or settings.roles_file, "Roles file")
            projects_path = resolve_file_path(projects_file or settings.projects_file, "Projects file")
        except FileNotFoundError as e:
            raise GcpToolsError(str(e))
        roles = read_list_file(str(roles_path))
        projects = read_list_file(str(projects_path))
        return IamBatchApply.for_member(member, roles, projects, provider, settings)
    
    run_command(ctx, build, {}, mode, dry_run, as_json, output_dir)
