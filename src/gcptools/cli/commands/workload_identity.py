"""Workload identity command - bind a Kubernetes SA to a GCP SA."""

import sys
from typing import Optional
import click
from ...locator import parse_workload_identity_args
from ...operations import WorkloadIdentityBind
from ...operations.base import ValuePrompt
from ..prompts import ClickDecisionPort
from ..utils import ABORT_MESSAGE, plan_options, run_command


@click.group(name='workload-identity')
def workload_identity():
    """GKE Workload Identity helpers."""
    pass


def _prompt_args(ctx) -> Optional[str]:
    """Ask for the four fields when no argument was given; None if a required one is left empty."""
    decisions = ctx.ensure_object(dict).get("decisions") or ClickDecisionPort()
    fields = [
        (ValuePrompt("project", "Project ID"), True),
        (ValuePrompt("namespace", "Namespace"), True),
        (ValuePrompt("ksa", "Kubernetes SA (optional, defaults to the GCP SA name)"), False),
        (ValuePrompt("gsa", "GCP Service Account"), True),
    ]
    answers = []
    for field, required in fields:
        answer = decisions.ask_value(field)
        if not answer and required:
            return None
        answers.append(answer or "")
    return ",".join(answers)


@workload_identity.command()
@click.argument('args', required=False)
@plan_options
@click.pass_context
def bind(ctx, args, mode, dry_run, as_json, output_dir):
    """
    Ensure namespace, KSA, GSA, IAM binding and KSA annotation exist.
    
    ARGS is PROJECT,NAMESPACE,GSA or PROJECT,NAMESPACE,KSA,GSA. The Kubernetes
    service account defaults to the GCP service account name.
    """
    if not args:
        args = _prompt_args(ctx)
        if args is None:
            click.echo(ABORT_MESSAGE, err=True)
            sys.exit(0)
    
    def build(provider, settings):
        return WorkloadIdentityBind(parse_workload_identity_args(args), provider, settings)
    
    run_command(ctx, build, {}, mode, dry_run, as_json, output_dir)
